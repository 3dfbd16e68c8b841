# backend/app/api/products_api.py
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from ..core.errors import NotFound
from ..models import Product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


# ---------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------
class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    unit: str = "pcs"
    hsn_code: Optional[str] = None
    tax_rate: Decimal = Field(Decimal("18"), ge=0, le=100)
    is_active: bool = True


class ProductOut(BaseModel):
    id: int
    tenant_id: int
    name: str
    description: Optional[str] = None
    price: float
    unit: str
    hsn_code: Optional[str] = None
    tax_rate: float
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _get_owned(db: Session, tenant_id: int, pid: int) -> Product:
    p = db.query(Product).filter(Product.id == pid, Product.tenant_id == tenant_id).first()
    if not p:
        raise NotFound("Product not found")
    return p


def _apply(p: Product, body: ProductIn) -> None:
    p.name = body.name.strip()
    p.description = body.description
    p.price = body.price
    p.unit = (body.unit or "pcs").strip() or "pcs"
    p.hsn_code = body.hsn_code
    p.tax_rate = body.tax_rate
    p.is_active = body.is_active


# ---------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------
@router.get("", response_model=List[ProductOut])
@router.get("/", response_model=List[ProductOut], include_in_schema=False)
def list_products(
    active: Optional[bool] = Query(None, description="true: only active (item pickers), false: only inactive"),
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    q = db.query(Product).filter(Product.tenant_id == current.tenant_id)
    if active is not None:
        q = q.filter(Product.is_active == active)
    return q.order_by(Product.created_at.desc(), Product.id.desc()).all()


@router.get("/{pid}", response_model=ProductOut)
def get_product(
    pid: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return _get_owned(db, current.tenant_id, pid)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_product(
    body: ProductIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = Product(tenant_id=current.tenant_id)
    _apply(p, body)
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info("Product %s created for tenant %s", p.id, current.tenant_id)
    return p


@router.put("/{pid}", response_model=ProductOut)
def update_product(
    pid: int,
    body: ProductIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    # Belgelerdeki satırlar snapshot olduğu için burada yapılan değişiklik eski belgelere yansımaz
    p = _get_owned(db, current.tenant_id, pid)
    _apply(p, body)
    db.commit()
    db.refresh(p)
    return p


@router.delete("/{pid}")
def delete_product(
    pid: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = _get_owned(db, current.tenant_id, pid)
    db.delete(p)
    db.commit()
    return {"message": "Product deleted successfully"}
