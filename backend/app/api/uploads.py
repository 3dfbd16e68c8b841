# backend/app/api/uploads.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .business_settings import load_business_profile, save_business_profile
from ..core.config import settings
from ..core.errors import ValidationFailed
from ..core.images import fit_to_square_png, to_data_uri

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])

PROFILE_IMAGE_TYPES = ("logo", "signature")


def _check_type(kind: Optional[str]) -> str:
    if kind not in PROFILE_IMAGE_TYPES:
        raise ValidationFailed("Invalid type. Must be logo or signature")
    return kind


@router.post("/image")
def upload_profile_image(
    file: UploadFile = File(...),
    type: Optional[str] = Query(None, description="logo | signature"),
    form_type: Optional[str] = Form(None, alias="type"),
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    # type query'de veya form alanında gelebilir
    kind = _check_type(type or form_type)
    if file.content_type and not file.content_type.startswith("image/"):
        raise ValidationFailed("File must be an image")

    data = file.file.read()
    try:
        png = fit_to_square_png(data, settings.PROFILE_IMAGE_SIZE_PX)
    except ValueError as e:
        raise ValidationFailed(str(e)) from e

    image_url = to_data_uri(png, "image/png")
    profile = load_business_profile(db, current.tenant_id)
    profile[kind] = image_url
    save_business_profile(db, current.tenant_id, profile)

    logger.info("%s uploaded for tenant %s", kind, current.tenant_id)
    return {"success": True, "message": f"{kind} uploaded successfully", "image_url": image_url}


@router.delete("/image")
def delete_profile_image(
    type: Optional[str] = Query(None, description="logo | signature"),
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    kind = _check_type(type)
    profile = load_business_profile(db, current.tenant_id)
    profile[kind] = ""
    save_business_profile(db, current.tenant_id, profile)
    return {"success": True, "message": f"{kind} removed successfully"}
