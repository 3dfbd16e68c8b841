# backend/app/api/line_items.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from ..core.errors import NotFound, ValidationFailed
from ..models import Product, Quotation
from .totals_runtime import DocumentTotals, LineInput, compute_totals, to_float


# ---------------------------
# Shared schemas
# ---------------------------
class AddressIn(BaseModel):
    street: Optional[str] = ""
    city: Optional[str] = ""
    state: Optional[str] = ""
    pincode: Optional[str] = ""
    country: Optional[str] = "India"


class LineItemIn(BaseModel):
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    description: Optional[str] = None
    quantity: Decimal = Field(..., gt=0)
    unit: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)


class CustomerSnapshotIn(BaseModel):
    customer_id: int
    customer_name: str = Field(..., min_length=1)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[AddressIn] = None


# ---------------------------
# Snapshot
# ---------------------------
def snapshot_items(db: Session, tenant_id: int, items: Sequence[LineItemIn]) -> List[Dict[str, Any]]:
    """
    Ürün bilgisini yazma anında satıra kopyalar. Ürün sonradan değişse de
    belge değişmez. Çağıranın verdiği alanlar ürün değerlerinin önüne geçer.
    """
    ids = {it.product_id for it in items if it.product_id is not None}
    products: Dict[int, Product] = {}
    if ids:
        rows = (
            db.query(Product)
            .filter(Product.tenant_id == tenant_id, Product.id.in_(ids))
            .all()
        )
        products = {p.id: p for p in rows}

    out: List[Dict[str, Any]] = []
    for idx, it in enumerate(items):
        prod = products.get(it.product_id) if it.product_id is not None else None

        name = it.product_name or (prod.name if prod else None)
        price = it.price if it.price is not None else (prod.price if prod else None)
        if not name or price is None:
            raise ValidationFailed(f"Item {idx + 1}: product_name and price are required")

        tax_rate = it.tax_rate if it.tax_rate is not None else (prod.tax_rate if prod else Decimal("0"))
        unit = it.unit or (prod.unit if prod else None) or "pcs"

        out.append({
            "position": idx,
            "product_id": it.product_id,
            "product_name": name,
            "description": it.description if it.description is not None else (prod.description if prod else None),
            "quantity": Decimal(str(it.quantity)),
            "unit": unit,
            "price": Decimal(str(price)),
            "tax_rate": Decimal(str(tax_rate)),
        })
    return out


def totals_for(snapshots: Sequence[Dict[str, Any]], apply_tax: bool) -> DocumentTotals:
    return compute_totals(
        [LineInput(quantity=s["quantity"], price=s["price"], tax_rate=s["tax_rate"]) for s in snapshots],
        apply_tax,
    )


def build_item_rows(model: Type, snapshots: Sequence[Dict[str, Any]], totals: Optional[DocumentTotals] = None) -> list:
    rows = []
    for i, s in enumerate(snapshots):
        data = dict(s)
        if totals is not None:
            data["total"] = totals.lines[i].total
        rows.append(model(**data))
    return rows


def copy_item_rows(model: Type, source_items: Sequence[Any], with_total: bool = True) -> list:
    """Başka bir belgenin satırlarını birebir kopyalar (duplicate)."""
    rows = []
    for it in source_items:
        data = item_snapshot(it)
        if with_total:
            data["total"] = it.total
        rows.append(model(**data))
    return rows


def item_snapshot(it: Any) -> Dict[str, Any]:
    return {
        "position": it.position,
        "product_id": it.product_id,
        "product_name": it.product_name,
        "description": it.description,
        "quantity": it.quantity,
        "unit": it.unit,
        "price": it.price,
        "tax_rate": it.tax_rate,
    }


def serialize_item(it: Any) -> Dict[str, Any]:
    data = {
        "product_id": it.product_id,
        "product_name": it.product_name,
        "description": it.description,
        "quantity": to_float(it.quantity),
        "unit": it.unit,
        "price": to_float(it.price),
        "tax_rate": to_float(it.tax_rate),
    }
    if hasattr(it, "total"):
        data["total"] = to_float(it.total)
    return data


def serialize_customer_snapshot(doc: Any) -> Dict[str, Any]:
    return {
        "customer_id": doc.customer_id,
        "customer_name": doc.customer_name,
        "customer_email": doc.customer_email,
        "customer_phone": doc.customer_phone,
        "customer_address": doc.customer_address,
    }


def customer_snapshot_values(body: CustomerSnapshotIn) -> Dict[str, Any]:
    return {
        "customer_id": body.customer_id,
        "customer_name": body.customer_name,
        "customer_email": str(body.customer_email).lower() if body.customer_email else None,
        "customer_phone": body.customer_phone,
        "customer_address": body.customer_address.model_dump() if body.customer_address else None,
    }


def check_quotation_link(db: Session, tenant_id: int, quotation_id: Optional[int]) -> None:
    """Bağlanan teklif aynı tenant'a ait olmalı; değilse yok sayılır ve 404 döner."""
    if quotation_id is None:
        return
    exists = (
        db.query(Quotation.id)
        .filter(Quotation.id == quotation_id, Quotation.tenant_id == tenant_id)
        .first()
    )
    if not exists:
        raise NotFound("Quotation not found")
