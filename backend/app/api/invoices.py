# backend/app/api/invoices.py
import logging
from datetime import date
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .line_items import (
    CustomerSnapshotIn,
    LineItemIn,
    build_item_rows,
    check_quotation_link,
    customer_snapshot_values,
    serialize_customer_snapshot,
    serialize_item,
    snapshot_items,
    totals_for,
)
from .numbering import next_document_number
from .totals_runtime import to_float
from .business_settings import load_business_profile
from ..core.errors import NotFound
from ..models import Invoice, InvoiceItem
from ..rendering import context as render_context
from ..rendering.pdf import render_document_pdf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])

InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]


# ---------------------------
# Schemas
# ---------------------------
class InvoiceIn(CustomerSnapshotIn):
    items: List[LineItemIn] = Field(default_factory=list)
    due_date: date
    paid_date: Optional[date] = None
    status: InvoiceStatus = "draft"
    notes: Optional[str] = None
    terms: Optional[str] = None
    quotation_id: Optional[int] = None


# ---------------------------
# Helpers
# ---------------------------
def _get_owned(db: Session, tenant_id: int, invoice_id: int) -> Invoice:
    inv = (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id, Invoice.tenant_id == tenant_id)
        .first()
    )
    if not inv:
        raise NotFound("Invoice not found")
    return inv


def serialize_invoice(inv: Invoice) -> Dict[str, Any]:
    return {
        "id": inv.id,
        "tenant_id": inv.tenant_id,
        "invoice_number": inv.invoice_number,
        **serialize_customer_snapshot(inv),
        "items": [serialize_item(it) for it in inv.items],
        "subtotal": to_float(inv.subtotal),
        "tax_amount": to_float(inv.tax_amount),
        "total": to_float(inv.total),
        "status": inv.status,
        "due_date": inv.due_date.isoformat() if inv.due_date else None,
        "paid_date": inv.paid_date.isoformat() if inv.paid_date else None,
        "notes": inv.notes,
        "terms": inv.terms,
        "quotation_id": inv.quotation_id,
        "created_at": inv.created_at.isoformat() if inv.created_at else None,
        "updated_at": inv.updated_at.isoformat() if inv.updated_at else None,
    }


def _apply(db: Session, inv: Invoice, body: InvoiceIn, tenant_id: int) -> None:
    snaps = snapshot_items(db, tenant_id, body.items)
    totals = totals_for(snaps, True)

    for k, v in customer_snapshot_values(body).items():
        setattr(inv, k, v)
    inv.items = build_item_rows(InvoiceItem, snaps, totals)
    inv.subtotal = totals.subtotal
    inv.tax_amount = totals.tax_amount
    inv.total = totals.total
    inv.status = body.status
    inv.due_date = body.due_date
    inv.paid_date = body.paid_date
    if body.status == "paid" and inv.paid_date is None:
        inv.paid_date = date.today()
    inv.notes = body.notes
    inv.terms = body.terms
    inv.quotation_id = body.quotation_id


# ---------------------------
# CRUD
# ---------------------------
@router.get("")
def list_invoices(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    rows = (
        db.query(Invoice)
        .filter(Invoice.tenant_id == current.tenant_id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )
    return [serialize_invoice(inv) for inv in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_invoice(
    body: InvoiceIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    check_quotation_link(db, current.tenant_id, body.quotation_id)
    number = next_document_number(db, current.tenant_id, "invoice")
    inv = Invoice(tenant_id=current.tenant_id, invoice_number=number)
    _apply(db, inv, body, current.tenant_id)
    db.add(inv)
    db.commit()
    db.refresh(inv)
    logger.info("Invoice %s created for tenant %s", inv.invoice_number, current.tenant_id)
    return serialize_invoice(inv)


@router.get("/{invoice_id}")
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return serialize_invoice(_get_owned(db, current.tenant_id, invoice_id))


@router.put("/{invoice_id}")
def update_invoice(
    invoice_id: int,
    body: InvoiceIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    inv = _get_owned(db, current.tenant_id, invoice_id)
    check_quotation_link(db, current.tenant_id, body.quotation_id)
    # quotation_id gönderilmezse mevcut bağlantı korunur
    if body.quotation_id is None:
        body = body.model_copy(update={"quotation_id": inv.quotation_id})
    _apply(db, inv, body, current.tenant_id)
    db.commit()
    db.refresh(inv)
    return serialize_invoice(inv)


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    inv = _get_owned(db, current.tenant_id, invoice_id)
    db.delete(inv)
    db.commit()
    return {"message": "Invoice deleted successfully"}


@router.get("/{invoice_id}/pdf")
def invoice_pdf(
    invoice_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    inv = _get_owned(db, current.tenant_id, invoice_id)
    ctx = render_context.document_context(
        "invoice",
        serialize_invoice(inv),
        load_business_profile(db, current.tenant_id),
    )
    return Response(
        content=render_document_pdf(ctx),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="Invoice-{inv.invoice_number}.pdf"'},
    )
