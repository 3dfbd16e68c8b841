# backend/tests/test_profile_and_images_api.py
import base64
import inspect
import struct
from io import BytesIO

from PIL import Image

from app.api import brand_images, deps, uploads
from app.core.images import decode_data_uri, fit_to_square_png, read_image_info
from conftest import png_bytes


def png_header(width: int, height: int) -> bytes:
    # yalnızca imza + IHDR: boyut kontrolü decode gerektirmez
    ihdr = struct.pack(">II5B", width, height, 8, 6, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + struct.pack(">I", 13) + b"IHDR" + ihdr + b"\x00\x00\x00\x00"


def _upload_brand(client, headers, data, name="work.png", content_type="image/png"):
    return client.post("/brand-images", files={"file": (name, data, content_type)}, headers=headers)


# -----------------------------
# Business settings
# -----------------------------
def test_business_settings_roundtrip(client, auth):
    r = client.get("/business-settings", headers=auth)
    assert r.status_code == 200
    assert r.json()["business_details"]["business_name"] == "Alpha Solar"

    r = client.put(
        "/business-settings",
        json={
            "business_name": "  Sunrise Energy ",
            "gst_number": "33ABCDE1234F1Z5",
            "bank_details": {"account_name": "Sunrise Energy", "ifsc_code": "SBIN0000001"},
            "address": {"city": "Madurai"},
        },
        headers=auth,
    )
    assert r.status_code == 200
    details = r.json()["business_details"]
    assert details["business_name"] == "Sunrise Energy"
    assert details["bank_details"]["ifsc_code"] == "SBIN0000001"
    assert details["address"]["city"] == "Madurai"


def test_business_name_is_required(client, auth):
    r = client.put("/business-settings", json={"tagline": "x"}, headers=auth)
    assert r.status_code == 400
    assert r.json() == {"error": "Required field missing: business_name"}


def test_settings_update_keeps_uploaded_logo(client, auth):
    up = client.post(
        "/upload/image?type=logo",
        files={"file": ("logo.png", png_bytes(600, 200), "image/png")},
        headers=auth,
    )
    assert up.status_code == 200
    logo = up.json()["image_url"]

    client.put("/business-settings", json={"business_name": "Renamed"}, headers=auth)
    details = client.get("/business-settings", headers=auth).json()["business_details"]
    assert details["logo"] == logo
    assert details["business_name"] == "Renamed"


# -----------------------------
# Logo / signature
# -----------------------------
def test_upload_logo_is_fitted_to_square(client, auth):
    r = client.post(
        "/upload/image",
        data={"type": "signature"},
        files={"file": ("sign.png", png_bytes(900, 300), "image/png")},
        headers=auth,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["image_url"].startswith("data:image/png;base64,")

    with Image.open(BytesIO(decode_data_uri(body["image_url"]))) as img:
        assert img.size == (300, 300)

    details = client.get("/business-settings", headers=auth).json()["business_details"]
    assert details["signature"] == body["image_url"]


def test_upload_rejects_bad_type_and_bad_file(client, auth):
    r = client.post("/upload/image?type=banner", files={"file": ("a.png", png_bytes(10, 10), "image/png")}, headers=auth)
    assert r.json() == {"error": "Invalid type. Must be logo or signature"}

    r = client.post("/upload/image?type=logo", files={"file": ("a.txt", b"hello", "text/plain")}, headers=auth)
    assert r.status_code == 400

    r = client.post("/upload/image?type=logo", files={"file": ("a.png", b"not really", "image/png")}, headers=auth)
    assert r.status_code == 400


def test_delete_logo(client, auth):
    client.post("/upload/image?type=logo", files={"file": ("l.png", png_bytes(50, 50), "image/png")}, headers=auth)
    r = client.delete("/upload/image?type=logo", headers=auth)
    assert r.status_code == 200
    assert client.get("/business-settings", headers=auth).json()["business_details"]["logo"] == ""


def test_fit_to_square_png_keeps_aspect():
    out = fit_to_square_png(png_bytes(200, 100, (255, 0, 0, 255)), 100)
    with Image.open(BytesIO(out)) as img:
        assert img.size == (100, 100)
        assert img.getpixel((50, 50))[3] == 255
        assert img.getpixel((50, 5))[3] == 0


# -----------------------------
# Brand images
# -----------------------------
def test_brand_image_limit(client, auth):
    ok = _upload_brand(client, auth, png_header(500, 500))
    assert ok.status_code == 201
    assert ok.json()["success"] is True
    assert ok.json()["brand_image"]["order"] == 0

    too_big = _upload_brand(client, auth, png_header(501, 400))
    assert too_big.status_code == 400
    assert too_big.json() == {"error": "Image dimensions must be 500x500 or smaller. Your image is 501x400"}


def test_brand_images_ordering_and_delete(client, auth, tenant_b):
    first = _upload_brand(client, auth, png_bytes(20, 20)).json()["brand_image"]
    second = _upload_brand(client, auth, png_bytes(30, 10)).json()["brand_image"]
    assert (first["order"], second["order"]) == (0, 1)
    assert (second["width"], second["height"]) == (30, 10)

    listed = client.get("/brand-images", headers=auth).json()["brand_images"]
    assert [img["id"] for img in listed] == [first["id"], second["id"]]
    assert client.get("/brand-images", headers=tenant_b["headers"]).json() == {"brand_images": []}

    assert client.delete("/brand-images", headers=auth).json() == {"error": "Image ID is required"}
    r = client.delete(f"/brand-images?id={first['id']}", headers=tenant_b["headers"])
    assert r.status_code == 404
    assert r.json() == {"error": "Image not found"}

    assert client.delete(f"/brand-images?id={first['id']}", headers=auth).json()["success"] is True
    listed = client.get("/brand-images", headers=auth).json()["brand_images"]
    assert [img["id"] for img in listed] == [second["id"]]


def test_brand_image_rejects_unknown_format(client, auth):
    r = _upload_brand(client, auth, b"BM" + b"\x00" * 40, name="x.bmp", content_type="image/bmp")
    assert r.status_code == 400
    assert r.json() == {"error": "Unsupported image format. Use PNG, JPEG, GIF or WebP"}


# -----------------------------
# Header parsing
# -----------------------------
def test_read_image_info_formats():
    assert read_image_info(png_header(320, 240)).format == "png"

    gif = b"GIF89a" + struct.pack("<HH", 64, 48) + b"\x00" * 4
    info = read_image_info(gif)
    assert (info.format, info.width, info.height) == ("gif", 64, 48)

    # SOI, APP0 (uzunluk 16), SOF0
    jpeg = (
        b"\xff\xd8"
        + b"\xff\xe0" + struct.pack(">H", 16) + b"JFIF\x00" + b"\x00" * 9
        + b"\xff\xc0" + struct.pack(">HBHH", 17, 8, 120, 160) + b"\x00" * 10
    )
    info = read_image_info(jpeg)
    assert (info.format, info.width, info.height) == ("jpeg", 160, 120)

    webp = b"RIFF" + b"\x00" * 4 + b"WEBPVP8X" + b"\x00" * 8 + (99).to_bytes(3, "little") + (49).to_bytes(3, "little")
    info = read_image_info(webp)
    assert (info.format, info.width, info.height) == ("webp", 100, 50)

    assert read_image_info(b"plain text") is None
    assert read_image_info(base64.b64decode("AAAA")) is None


def test_upload_handlers_run_in_threadpool():
    # senkron DB + Pillow işi event loop'u bloklamamalı
    for handler in (uploads.upload_profile_image, brand_images.upload_brand_image, deps.get_current_user):
        assert not inspect.iscoroutinefunction(handler)
