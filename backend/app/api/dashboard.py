# backend/app/api/dashboard.py
import calendar
from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from .deps import get_db, get_current_user, CurrentUser
from .totals_runtime import percent_change
from ..models import Customer, Invoice, Product, Proposal, Quotation, utcnow

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

STAT_MODELS = {
    "customers": Customer,
    "products": Product,
    "quotations": Quotation,
    "invoices": Invoice,
    "proposals": Proposal,
}


def one_month_ago(now: datetime) -> datetime:
    """Takvim ayı geri; gün hedef ayın son gününe kırpılır (31 Mart -> 28/29 Şubat)."""
    year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def _count(db: Session, model, tenant_id: int, before: datetime = None) -> int:
    q = db.query(func.count(model.id)).filter(model.tenant_id == tenant_id)
    if before is not None:
        q = q.filter(model.created_at < before)
    return q.scalar() or 0


@router.get("/stats")
def dashboard_stats(
    db: Session = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
) -> Dict[str, Dict[str, int]]:
    baseline = one_month_ago(utcnow())
    out: Dict[str, Dict[str, int]] = {}
    for key, model in STAT_MODELS.items():
        count = _count(db, model, current.tenant_id)
        previous = _count(db, model, current.tenant_id, before=baseline)
        out[key] = {"count": count, "change": percent_change(count, previous)}
    return out
