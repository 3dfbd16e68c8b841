# backend/app/api/quotations.py
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .line_items import (
    CustomerSnapshotIn,
    LineItemIn,
    build_item_rows,
    copy_item_rows,
    customer_snapshot_values,
    item_snapshot,
    serialize_customer_snapshot,
    serialize_item,
    snapshot_items,
    totals_for,
)
from .numbering import next_document_number
from .totals_runtime import to_float
from .business_settings import load_business_profile
from .brand_images import list_brand_image_urls
from .invoices import InvoiceStatus, serialize_invoice
from ..core.config import settings
from ..core.errors import NotFound
from ..models import Invoice, InvoiceItem, Quotation, QuotationItem
from ..rendering import context as render_context
from ..rendering.pdf import render_document_pdf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotations", tags=["quotations"])

QuotationStatus = Literal["sent", "accepted", "rejected", "expired"]


# ---------------------------
# Schemas
# ---------------------------
class QuotationIn(CustomerSnapshotIn):
    items: List[LineItemIn] = Field(default_factory=list)
    include_gst: bool = True
    hide_item_prices: bool = False
    status: QuotationStatus = "sent"
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


class ConvertToInvoiceIn(BaseModel):
    due_date: date
    status: InvoiceStatus = "draft"


# ---------------------------
# Helpers
# ---------------------------
def default_valid_until() -> date:
    return date.today() + timedelta(days=settings.QUOTATION_VALIDITY_DAYS)


def _get_owned(db: Session, tenant_id: int, quotation_id: int) -> Quotation:
    q = (
        db.query(Quotation)
        .filter(Quotation.id == quotation_id, Quotation.tenant_id == tenant_id)
        .first()
    )
    if not q:
        raise NotFound("Quotation not found")
    return q


def serialize_quotation(q: Quotation) -> Dict[str, Any]:
    data = {
        "id": q.id,
        "tenant_id": q.tenant_id,
        "quotation_number": q.quotation_number,
        **serialize_customer_snapshot(q),
        "items": [serialize_item(it) for it in q.items],
        "subtotal": to_float(q.subtotal),
        "tax_amount": to_float(q.tax_amount),
        "total": to_float(q.total),
        "include_gst": bool(q.include_gst),
        "hide_item_prices": bool(q.hide_item_prices),
        "status": q.status,
        "valid_until": q.valid_until.isoformat() if q.valid_until else None,
        "notes": q.notes,
        "terms": q.terms,
        "created_at": q.created_at.isoformat() if q.created_at else None,
        "updated_at": q.updated_at.isoformat() if q.updated_at else None,
    }
    return data


def _apply(db: Session, q: Quotation, body: QuotationIn, tenant_id: int) -> None:
    snaps = snapshot_items(db, tenant_id, body.items)
    totals = totals_for(snaps, body.include_gst)

    for k, v in customer_snapshot_values(body).items():
        setattr(q, k, v)
    q.items = build_item_rows(QuotationItem, snaps, totals)
    q.subtotal = totals.subtotal
    q.tax_amount = totals.tax_amount
    q.total = totals.total
    q.include_gst = body.include_gst
    q.hide_item_prices = body.hide_item_prices
    q.status = body.status
    q.valid_until = body.valid_until or default_valid_until()
    q.notes = body.notes
    q.terms = body.terms


# ---------------------------
# CRUD
# ---------------------------
@router.get("")
def list_quotations(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    rows = (
        db.query(Quotation)
        .filter(Quotation.tenant_id == current.tenant_id)
        .order_by(Quotation.created_at.desc(), Quotation.id.desc())
        .all()
    )
    return [serialize_quotation(q) for q in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_quotation(
    body: QuotationIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    number = next_document_number(db, current.tenant_id, "quotation")
    q = Quotation(tenant_id=current.tenant_id, quotation_number=number)
    _apply(db, q, body, current.tenant_id)
    db.add(q)
    db.commit()
    db.refresh(q)
    logger.info("Quotation %s created for tenant %s", q.quotation_number, current.tenant_id)
    return serialize_quotation(q)


@router.get("/{quotation_id}")
def get_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return serialize_quotation(_get_owned(db, current.tenant_id, quotation_id))


@router.put("/{quotation_id}")
def update_quotation(
    quotation_id: int,
    body: QuotationIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    q = _get_owned(db, current.tenant_id, quotation_id)
    _apply(db, q, body, current.tenant_id)
    db.commit()
    db.refresh(q)
    return serialize_quotation(q)


@router.delete("/{quotation_id}")
def delete_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    q = _get_owned(db, current.tenant_id, quotation_id)
    db.delete(q)
    db.commit()
    return {"message": "Quotation deleted successfully"}


# ---------------------------
# Duplicate / Convert
# ---------------------------
@router.post("/{quotation_id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    src = _get_owned(db, current.tenant_id, quotation_id)
    number = next_document_number(db, current.tenant_id, "quotation")

    # Kimlik, numara, durum ve zaman damgaları kopyalanmaz
    copy = Quotation(
        tenant_id=current.tenant_id,
        quotation_number=number,
        customer_id=src.customer_id,
        customer_name=src.customer_name,
        customer_email=src.customer_email,
        customer_phone=src.customer_phone,
        customer_address=src.customer_address,
        items=copy_item_rows(QuotationItem, src.items),
        subtotal=src.subtotal,
        tax_amount=src.tax_amount,
        total=src.total,
        include_gst=src.include_gst,
        hide_item_prices=src.hide_item_prices,
        status="sent",
        valid_until=default_valid_until(),
        notes=src.notes,
        terms=src.terms,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    logger.info("Quotation %s duplicated as %s", src.quotation_number, copy.quotation_number)
    return serialize_quotation(copy)


@router.post("/{quotation_id}/invoice", status_code=status.HTTP_201_CREATED)
def convert_to_invoice(
    quotation_id: int,
    body: ConvertToInvoiceIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    src = _get_owned(db, current.tenant_id, quotation_id)
    number = next_document_number(db, current.tenant_id, "invoice")

    # Faturada vergi her zaman uygulanır; toplamlar yeniden hesaplanır
    snaps = [item_snapshot(it) for it in src.items]
    totals = totals_for(snaps, True)

    inv = Invoice(
        tenant_id=current.tenant_id,
        invoice_number=number,
        customer_id=src.customer_id,
        customer_name=src.customer_name,
        customer_email=src.customer_email,
        customer_phone=src.customer_phone,
        customer_address=src.customer_address,
        items=build_item_rows(InvoiceItem, snaps, totals),
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total=totals.total,
        status=body.status,
        due_date=body.due_date,
        paid_date=date.today() if body.status == "paid" else None,
        notes=src.notes,
        terms=src.terms,
        quotation_id=src.id,
    )
    db.add(inv)
    db.commit()
    db.refresh(inv)
    logger.info("Quotation %s converted to invoice %s", src.quotation_number, inv.invoice_number)
    return serialize_invoice(inv)


# ---------------------------
# PDF
# ---------------------------
@router.get("/{quotation_id}/pdf")
def quotation_pdf(
    quotation_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    q = _get_owned(db, current.tenant_id, quotation_id)
    ctx = render_context.document_context(
        "quotation",
        serialize_quotation(q),
        load_business_profile(db, current.tenant_id),
        brand_images=list_brand_image_urls(db, current.tenant_id),
    )
    pdf = render_document_pdf(ctx)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="Quotation-{q.quotation_number}.pdf"'},
    )
