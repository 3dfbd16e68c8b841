# backend/app/api/presets.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .line_items import LineItemIn, build_item_rows, serialize_item, snapshot_items
from ..core.errors import NotFound, ValidationFailed
from ..models import Preset, PresetItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/presets", tags=["presets"])


class PresetIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    items: List[LineItemIn] = Field(default_factory=list)


def _get_owned(db: Session, tenant_id: int, preset_id: int) -> Preset:
    p = db.query(Preset).filter(Preset.id == preset_id, Preset.tenant_id == tenant_id).first()
    if not p:
        raise NotFound("Preset not found")
    return p


def serialize_preset(p: Preset) -> Dict[str, Any]:
    return {
        "id": p.id,
        "tenant_id": p.tenant_id,
        "name": p.name,
        "description": p.description,
        "items": [serialize_item(it) for it in p.items],
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updated_at": p.updated_at.isoformat() if p.updated_at else None,
    }


def _apply(db: Session, p: Preset, body: PresetIn, tenant_id: int) -> None:
    if not body.items:
        raise ValidationFailed("Name and at least one item are required")
    p.name = body.name.strip()
    p.description = body.description
    # Preset satırları toplam tutmaz; teklif oluşturulurken hesaplanır
    p.items = build_item_rows(PresetItem, snapshot_items(db, tenant_id, body.items))


@router.get("")
def list_presets(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    rows = (
        db.query(Preset)
        .filter(Preset.tenant_id == current.tenant_id)
        .order_by(Preset.created_at.desc(), Preset.id.desc())
        .all()
    )
    return [serialize_preset(p) for p in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_preset(
    body: PresetIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = Preset(tenant_id=current.tenant_id)
    _apply(db, p, body, current.tenant_id)
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info("Preset %s (%s items) created for tenant %s", p.id, len(p.items), current.tenant_id)
    return serialize_preset(p)


@router.get("/{preset_id}")
def get_preset(
    preset_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return serialize_preset(_get_owned(db, current.tenant_id, preset_id))


@router.put("/{preset_id}")
def update_preset(
    preset_id: int,
    body: PresetIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = _get_owned(db, current.tenant_id, preset_id)
    _apply(db, p, body, current.tenant_id)
    db.commit()
    db.refresh(p)
    return serialize_preset(p)


@router.delete("/{preset_id}")
def delete_preset(
    preset_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = _get_owned(db, current.tenant_id, preset_id)
    db.delete(p)
    db.commit()
    return {"message": "Preset deleted successfully"}
