# backend/app/api/business_settings.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .line_items import AddressIn
from ..core.errors import NotFound
from ..models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/business-settings", tags=["business-settings"])


class BankDetailsIn(BaseModel):
    account_name: Optional[str] = ""
    account_number: Optional[str] = ""
    ifsc_code: Optional[str] = ""
    bank_name: Optional[str] = ""
    branch: Optional[str] = ""


class BusinessSettingsIn(BaseModel):
    business_name: str = Field(..., min_length=1)
    tagline: Optional[str] = None
    gst_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    address: Optional[AddressIn] = None
    bank_details: Optional[BankDetailsIn] = None
    # logo/signature /upload/image üzerinden yönetilir; gönderilmezse korunur
    logo: Optional[str] = None
    signature: Optional[str] = None


def owner_user(db: Session, tenant_id: int) -> Optional[User]:
    # BusinessProfile tenant'ın ilk (sahip) kullanıcısında tutulur
    return (
        db.query(User)
        .filter(User.tenant_id == tenant_id)
        .order_by(User.id.asc())
        .first()
    )


def load_business_profile(db: Session, tenant_id: int) -> Dict[str, Any]:
    user = owner_user(db, tenant_id)
    if not user or not user.business_details:
        return {}
    return dict(user.business_details)


def save_business_profile(db: Session, tenant_id: int, profile: Dict[str, Any]) -> User:
    user = owner_user(db, tenant_id)
    if not user:
        raise NotFound("User not found")
    # JSON kolonu yerinde değiştirilmez; yeni dict atanır
    user.business_details = dict(profile)
    db.commit()
    db.refresh(user)
    return user


def _serialize(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "tenant_id": user.tenant_id,
        "email": user.email,
        "name": user.name,
        "business_details": dict(user.business_details or {}),
    }


@router.get("")
def get_business_settings(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    user = owner_user(db, current.tenant_id)
    if not user:
        raise NotFound("User not found")
    return _serialize(user)


@router.put("")
def update_business_settings(
    body: BusinessSettingsIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    existing = load_business_profile(db, current.tenant_id)

    profile = body.model_dump(exclude={"logo", "signature"})
    profile["business_name"] = body.business_name.strip()
    profile["logo"] = body.logo if body.logo is not None else existing.get("logo", "")
    profile["signature"] = body.signature if body.signature is not None else existing.get("signature", "")

    user = save_business_profile(db, current.tenant_id, profile)
    logger.info("Business settings updated for tenant %s", current.tenant_id)
    return _serialize(user)
