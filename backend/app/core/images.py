# backend/app/core/images.py
from __future__ import annotations

import base64
import struct
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# SOF0..SOF15; C4 (DHT), C8 (JPG), CC (DAC) frame başlığı değildir
_JPEG_SOF = {m for m in range(0xC0, 0xD0)} - {0xC4, 0xC8, 0xCC}
# uzunluk alanı olmayan işaretçiler
_JPEG_STANDALONE = {0x01, 0xD8} | set(range(0xD0, 0xD8))


@dataclass
class ImageInfo:
    format: str  # png | jpeg | gif | webp
    width: int
    height: int

    @property
    def mime_type(self) -> str:
        return f"image/{self.format}"


def _png(data: bytes) -> Optional[ImageInfo]:
    if len(data) < 24 or not data.startswith(PNG_SIGNATURE):
        return None
    width, height = struct.unpack(">II", data[16:24])
    return ImageInfo("png", width, height)


def _gif(data: bytes) -> Optional[ImageInfo]:
    if len(data) < 10 or data[:6] not in (b"GIF87a", b"GIF89a"):
        return None
    width, height = struct.unpack("<HH", data[6:10])
    return ImageInfo("gif", width, height)


def _jpeg(data: bytes) -> Optional[ImageInfo]:
    if len(data) < 4 or data[:2] != b"\xff\xd8":
        return None
    offset = 2
    n = len(data)
    while offset + 1 < n:
        if data[offset] != 0xFF:
            return None
        marker = data[offset + 1]
        if marker == 0xFF:  # dolgu baytı
            offset += 1
            continue
        if marker in _JPEG_STANDALONE:
            offset += 2
            continue
        if offset + 4 > n:
            return None
        if marker in _JPEG_SOF:
            if offset + 9 > n:
                return None
            height, width = struct.unpack(">HH", data[offset + 5:offset + 9])
            return ImageInfo("jpeg", width, height)
        (length,) = struct.unpack(">H", data[offset + 2:offset + 4])
        offset += 2 + length
    return None


def _webp(data: bytes) -> Optional[ImageInfo]:
    if len(data) < 16 or data[:4] != b"RIFF" or data[8:12] != b"WEBP":
        return None
    chunk = data[12:16]
    if chunk == b"VP8 " and len(data) >= 30:
        w, h = struct.unpack("<HH", data[26:30])
        return ImageInfo("webp", w & 0x3FFF, h & 0x3FFF)
    if chunk == b"VP8L" and len(data) >= 25:
        (bits,) = struct.unpack("<I", data[21:25])
        return ImageInfo("webp", (bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1)
    if chunk == b"VP8X" and len(data) >= 30:
        w = int.from_bytes(data[24:27], "little") + 1
        h = int.from_bytes(data[27:30], "little") + 1
        return ImageInfo("webp", w, h)
    return None


def read_image_info(data: bytes) -> Optional[ImageInfo]:
    """
    Boyutları yalnızca format başlığından okur (tam decode yok).
    Tanınmayan veya bozuk başlıkta None döner.
    """
    for parse in (_png, _jpeg, _gif, _webp):
        info = parse(data)
        if info is not None:
            return info
    return None


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> Optional[bytes]:
    if not uri or not uri.startswith("data:") or ";base64," not in uri:
        return None
    try:
        return base64.b64decode(uri.split(";base64,", 1)[1])
    except ValueError:
        return None


def fit_to_square_png(data: bytes, size: int) -> bytes:
    """
    Oranı koruyarak size×size şeffaf tuvale ortalar, PNG döner.
    Pillow açamazsa ValueError.
    """
    try:
        with Image.open(BytesIO(data)) as src:
            img = src.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError("File must be a readable image") from e

    ratio = min(size / img.width, size / img.height)
    new_w = max(1, round(img.width * ratio))
    new_h = max(1, round(img.height * ratio))
    img = img.resize((new_w, new_h), Image.LANCZOS)

    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(img, ((size - new_w) // 2, (size - new_h) // 2), img)

    out = BytesIO()
    canvas.save(out, format="PNG")
    return out.getvalue()
