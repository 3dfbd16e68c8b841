# backend/app/api/customers.py
import logging
from typing import List, Optional
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .line_items import AddressIn
from ..core.errors import NotFound
from ..models import Customer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


# ---------------------------
# Pydantic Schemas
# ---------------------------

class CustomerIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    gst_number: Optional[str] = None
    address: Optional[AddressIn] = None


class CustomerOut(BaseModel):
    id: int
    tenant_id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    gst_number: Optional[str] = None
    address: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------
# Helpers
# ---------------------------

def _get_owned(db: Session, tenant_id: int, customer_id: int) -> Customer:
    c = (
        db.query(Customer)
        .filter(Customer.id == customer_id, Customer.tenant_id == tenant_id)
        .first()
    )
    if not c:
        raise NotFound("Customer not found")
    return c


def _apply(c: Customer, body: CustomerIn) -> None:
    # Tam değiştirme: gönderilmeyen opsiyonel alanlar boşalır
    c.name = body.name.strip()
    c.email = str(body.email).lower() if body.email else None
    c.phone = body.phone
    c.gst_number = body.gst_number
    c.address = body.address.model_dump() if body.address else None


# ---------------------------
# Endpoints
# ---------------------------

@router.get("", response_model=List[CustomerOut])
def list_customers(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
    search: Optional[str] = Query(None, description="Search in name/email/phone"),
):
    q = db.query(Customer).filter(Customer.tenant_id == current.tenant_id)
    if search:
        like = f"%{search.strip().lower()}%"
        q = q.filter(
            or_(
                func.lower(Customer.name).like(like),
                func.lower(Customer.email).like(like),
                Customer.phone.like(like),
            )
        )
    return q.order_by(Customer.created_at.desc(), Customer.id.desc()).all()


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    body: CustomerIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    c = Customer(tenant_id=current.tenant_id)
    _apply(c, body)
    db.add(c)
    db.commit()
    db.refresh(c)
    logger.info("Customer %s created for tenant %s", c.id, current.tenant_id)
    return c


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return _get_owned(db, current.tenant_id, customer_id)


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    body: CustomerIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    c = _get_owned(db, current.tenant_id, customer_id)
    _apply(c, body)
    db.commit()
    db.refresh(c)
    return c


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    c = _get_owned(db, current.tenant_id, customer_id)
    db.delete(c)
    db.commit()
    return {"message": "Customer deleted successfully"}
