# backend/app/api/brand_images.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from ..core.config import settings
from ..core.errors import NotFound, ValidationFailed
from ..core.images import read_image_info, to_data_uri
from ..models import BrandImage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/brand-images", tags=["brand-images"])


def _serialize(img: BrandImage) -> Dict[str, Any]:
    return {
        "id": img.id,
        "image_url": img.image_url,
        "order": img.order,
        "width": img.width,
        "height": img.height,
        "created_at": img.created_at.isoformat() if img.created_at else None,
    }


def _ordered(db: Session, tenant_id: int):
    return (
        db.query(BrandImage)
        .filter(BrandImage.tenant_id == tenant_id)
        .order_by(BrandImage.order.asc(), BrandImage.id.asc())
    )


def list_brand_image_urls(db: Session, tenant_id: int) -> List[str]:
    """Teklif PDF'indeki "Our Work" bölümü için sıralı data URI listesi."""
    return [img.image_url for img in _ordered(db, tenant_id).all()]


@router.get("")
def list_brand_images(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return {"brand_images": [_serialize(img) for img in _ordered(db, current.tenant_id).all()]}


@router.post("", status_code=status.HTTP_201_CREATED)
def upload_brand_image(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    if file.content_type and not file.content_type.startswith("image/"):
        raise ValidationFailed("File must be an image")

    data = file.file.read()
    info = read_image_info(data)
    if info is None:
        logger.info("Brand image rejected for tenant %s: unrecognized format", current.tenant_id)
        raise ValidationFailed("Unsupported image format. Use PNG, JPEG, GIF or WebP")

    limit = settings.BRAND_IMAGE_MAX_PX
    if info.width > limit or info.height > limit:
        logger.info(
            "Brand image rejected for tenant %s: %sx%s exceeds %spx",
            current.tenant_id, info.width, info.height, limit,
        )
        raise ValidationFailed(
            f"Image dimensions must be {limit}x{limit} or smaller. Your image is {info.width}x{info.height}"
        )

    max_order: Optional[int] = (
        db.query(func.max(BrandImage.order))
        .filter(BrandImage.tenant_id == current.tenant_id)
        .scalar()
    )
    img = BrandImage(
        tenant_id=current.tenant_id,
        image_url=to_data_uri(data, info.mime_type),
        order=(max_order if max_order is not None else -1) + 1,
        width=info.width,
        height=info.height,
    )
    db.add(img)
    db.commit()
    db.refresh(img)
    return {"success": True, "brand_image": _serialize(img)}


@router.delete("")
def delete_brand_image(
    id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    if id is None:
        raise ValidationFailed("Image ID is required")

    img = (
        db.query(BrandImage)
        .filter(BrandImage.id == id, BrandImage.tenant_id == current.tenant_id)
        .first()
    )
    if not img:
        raise NotFound("Image not found")
    db.delete(img)
    db.commit()
    return {"success": True, "message": "Image removed successfully"}
