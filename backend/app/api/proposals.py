# backend/app/api/proposals.py
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .numbering import next_document_number
from .line_items import check_quotation_link
from .roi_runtime import DEFAULT_PAYBACK_MAX, DEFAULT_PAYBACK_MIN, resolve_roi
from .totals_runtime import proposal_amounts, to_float
from .business_settings import load_business_profile
from ..core.config import settings
from ..core.errors import NotFound
from ..models import Proposal
from ..rendering import context as render_context
from ..rendering.html import render_proposal_html
from ..rendering.pdf import render_proposal_pdf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proposals", tags=["proposals"])

ProjectType = Literal["On-Grid Solar", "Off-Grid Solar", "Hybrid Solar"]
RoofType = Literal["Sheeted Roof", "RCC Roof", "Ground Mounted"]
ProposalStatus = Literal["draft", "sent", "accepted", "rejected", "expired"]


# ---------------------------
# Schemas
# ---------------------------
class MaterialIn(BaseModel):
    description: str = Field(..., min_length=1)
    specification: str = ""
    warranty: str = ""


class RoiIn(BaseModel):
    # Hepsi opsiyonel: verilmeyen alan kapasiteden hesaplanır
    energy_generation_per_year: Optional[float] = Field(None, ge=0)
    co2_savings_per_year: Optional[float] = Field(None, ge=0)
    payback_period_min: Optional[float] = Field(None, ge=0)
    payback_period_max: Optional[float] = Field(None, ge=0)
    total_savings_25_years: Optional[float] = Field(None, ge=0)
    trees_equivalent: Optional[float] = Field(None, ge=0)
    co2_eliminated_total: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def _payback_range(self):
        # tek taraf verilirse diğeri sabit varsayılandan gelir
        low = self.payback_period_min if self.payback_period_min is not None else DEFAULT_PAYBACK_MIN
        high = self.payback_period_max if self.payback_period_max is not None else DEFAULT_PAYBACK_MAX
        if low > high:
            raise ValueError("payback_period_min must not exceed payback_period_max")
        return self


class ProposalIn(BaseModel):
    quotation_id: Optional[int] = None
    client_name: str = Field(..., min_length=1)
    project_location: str = Field(..., min_length=1)
    plant_capacity: Decimal = Field(..., gt=0)
    project_type: ProjectType = "On-Grid Solar"
    roof_type: RoofType = "Sheeted Roof"
    price_per_kw: Decimal = Field(..., gt=0)
    gst_rate: Decimal = Field(Decimal("8.9"), ge=0, le=100)
    advance_percent: Decimal = Field(Decimal("70"), ge=0, le=100)
    balance_percent: Decimal = Field(Decimal("30"), ge=0, le=100)
    payment_terms_notes: Optional[str] = None
    materials: List[MaterialIn] = Field(default_factory=list)
    roi: Optional[RoiIn] = None
    technical_summary: Optional[str] = None
    financial_summary: Optional[str] = None
    terms: List[str] = Field(default_factory=list)
    valid_until: Optional[date] = None
    status: ProposalStatus = "draft"


# ---------------------------
# Helpers
# ---------------------------
def default_valid_until() -> date:
    return date.today() + timedelta(days=settings.PROPOSAL_VALIDITY_DAYS)


def _get_owned(db: Session, tenant_id: int, proposal_id: int) -> Proposal:
    p = (
        db.query(Proposal)
        .filter(Proposal.id == proposal_id, Proposal.tenant_id == tenant_id)
        .first()
    )
    if not p:
        raise NotFound("Proposal not found")
    return p


def serialize_proposal(p: Proposal) -> Dict[str, Any]:
    return {
        "id": p.id,
        "tenant_id": p.tenant_id,
        "quotation_id": p.quotation_id,
        "proposal_number": p.proposal_number,
        "date": p.date.isoformat() if p.date else None,
        "client_name": p.client_name,
        "project_location": p.project_location,
        "plant_capacity": to_float(p.plant_capacity),
        "project_type": p.project_type,
        "roof_type": p.roof_type,
        "price_per_kw": to_float(p.price_per_kw),
        "amount": to_float(p.amount),
        "gst_rate": to_float(p.gst_rate),
        "gst_amount": to_float(p.gst_amount),
        "total_amount": to_float(p.total_amount),
        "advance_percent": to_float(p.advance_percent),
        "balance_percent": to_float(p.balance_percent),
        "payment_terms_notes": p.payment_terms_notes,
        "materials": list(p.materials or []),
        "roi": dict(p.roi or {}),
        "technical_summary": p.technical_summary,
        "financial_summary": p.financial_summary,
        "terms": list(p.terms or []),
        "valid_until": p.valid_until.isoformat() if p.valid_until else None,
        "status": p.status,
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updated_at": p.updated_at.isoformat() if p.updated_at else None,
    }


def _apply(p: Proposal, body: ProposalIn) -> None:
    amounts = proposal_amounts(body.plant_capacity, body.price_per_kw, body.gst_rate)

    if body.advance_percent + body.balance_percent != Decimal("100"):
        # Kabul edilir ama kayda geçer
        logger.warning(
            "Proposal %s payment split %s/%s does not sum to 100",
            p.proposal_number, body.advance_percent, body.balance_percent,
        )

    p.quotation_id = body.quotation_id
    p.client_name = body.client_name.strip()
    p.project_location = body.project_location.strip()
    p.plant_capacity = body.plant_capacity
    p.project_type = body.project_type
    p.roof_type = body.roof_type
    p.price_per_kw = body.price_per_kw
    p.amount = amounts["amount"]
    p.gst_rate = body.gst_rate
    p.gst_amount = amounts["gst_amount"]
    p.total_amount = amounts["total_amount"]
    p.advance_percent = body.advance_percent
    p.balance_percent = body.balance_percent
    p.payment_terms_notes = body.payment_terms_notes
    p.materials = [m.model_dump() for m in body.materials]
    p.roi = resolve_roi(body.plant_capacity, body.roi.model_dump(exclude_none=True) if body.roi else None)
    p.technical_summary = body.technical_summary
    p.financial_summary = body.financial_summary
    p.terms = [t for t in body.terms if t and t.strip()]
    p.valid_until = body.valid_until or default_valid_until()
    p.status = body.status


def _render_context(db: Session, p: Proposal, tenant_id: int) -> dict:
    return render_context.proposal_context(serialize_proposal(p), load_business_profile(db, tenant_id))


# ---------------------------
# CRUD
# ---------------------------
@router.get("")
def list_proposals(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    rows = (
        db.query(Proposal)
        .filter(Proposal.tenant_id == current.tenant_id)
        .order_by(Proposal.created_at.desc(), Proposal.id.desc())
        .all()
    )
    return [serialize_proposal(p) for p in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_proposal(
    body: ProposalIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    check_quotation_link(db, current.tenant_id, body.quotation_id)
    number = next_document_number(db, current.tenant_id, "proposal")
    p = Proposal(tenant_id=current.tenant_id, proposal_number=number, date=date.today())
    _apply(p, body)
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info("Proposal %s created for tenant %s", p.proposal_number, current.tenant_id)
    return serialize_proposal(p)


@router.get("/{proposal_id}")
def get_proposal(
    proposal_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return serialize_proposal(_get_owned(db, current.tenant_id, proposal_id))


@router.put("/{proposal_id}")
def update_proposal(
    proposal_id: int,
    body: ProposalIn,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = _get_owned(db, current.tenant_id, proposal_id)
    check_quotation_link(db, current.tenant_id, body.quotation_id)
    _apply(p, body)
    db.commit()
    db.refresh(p)
    return serialize_proposal(p)


@router.delete("/{proposal_id}")
def delete_proposal(
    proposal_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = _get_owned(db, current.tenant_id, proposal_id)
    db.delete(p)
    db.commit()
    return {"message": "Proposal deleted successfully"}


@router.post("/{proposal_id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_proposal(
    proposal_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    src = _get_owned(db, current.tenant_id, proposal_id)
    number = next_document_number(db, current.tenant_id, "proposal")

    copy = Proposal(
        tenant_id=current.tenant_id,
        proposal_number=number,
        date=date.today(),
        quotation_id=src.quotation_id,
        client_name=src.client_name,
        project_location=src.project_location,
        plant_capacity=src.plant_capacity,
        project_type=src.project_type,
        roof_type=src.roof_type,
        price_per_kw=src.price_per_kw,
        amount=src.amount,
        gst_rate=src.gst_rate,
        gst_amount=src.gst_amount,
        total_amount=src.total_amount,
        advance_percent=src.advance_percent,
        balance_percent=src.balance_percent,
        payment_terms_notes=src.payment_terms_notes,
        materials=list(src.materials or []),
        roi=dict(src.roi or {}),
        technical_summary=src.technical_summary,
        financial_summary=src.financial_summary,
        terms=list(src.terms or []),
        valid_until=default_valid_until(),
        status="draft",
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    logger.info("Proposal %s duplicated as %s", src.proposal_number, copy.proposal_number)
    return serialize_proposal(copy)


# ---------------------------
# Rendering
# ---------------------------
@router.get("/{proposal_id}/pdf")
def proposal_pdf(
    proposal_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = _get_owned(db, current.tenant_id, proposal_id)
    pdf = render_proposal_pdf(_render_context(db, p, current.tenant_id))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="Proposal-{p.proposal_number}.pdf"'},
    )


@router.get("/{proposal_id}/html", response_class=HTMLResponse)
def proposal_html(
    proposal_id: int,
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    p = _get_owned(db, current.tenant_id, proposal_id)
    return HTMLResponse(render_proposal_html(_render_context(db, p, current.tenant_id)))
