# backend/app/api/numbering.py
from __future__ import annotations

import logging
from typing import Dict, Tuple, Type

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import Base, DocumentCounter, Invoice, Proposal, Quotation

logger = logging.getLogger(__name__)

# doc_type -> (prefix, model)
DOC_TYPES: Dict[str, Tuple[str, Type[Base]]] = {
    "quotation": ("QUO", Quotation),
    "invoice": ("INV", Invoice),
    "proposal": ("PROP", Proposal),
}


def format_number(prefix: str, value: int) -> str:
    return f"{prefix}-{value:04d}"


def _increment(db: Session, tenant_id: int, doc_type: str):
    # Tek UPDATE: value = value + 1 (satır kilidi altında), ardından aynı transaction'da okuma
    res = db.execute(
        update(DocumentCounter)
        .where(DocumentCounter.tenant_id == tenant_id, DocumentCounter.doc_type == doc_type)
        .values(value=DocumentCounter.value + 1)
    )
    if res.rowcount == 0:
        return None
    return db.execute(
        select(DocumentCounter.value).where(
            DocumentCounter.tenant_id == tenant_id, DocumentCounter.doc_type == doc_type
        )
    ).scalar_one()


def next_document_number(db: Session, tenant_id: int, doc_type: str) -> str:
    """
    <PREFIX>-<n 4 hane>. Sayaç ilk kullanımda tenant'ın mevcut belge sayısıyla
    başlatılır, böylece N belgesi olan tenant N+1 alır. Sonrası atomik artıştır;
    eşzamanlı oluşturmalar aynı numarayı alamaz.

    Belgeyi eklemeden ÖNCE çağrılmalı: sayaç satırı yarışında rollback yapılır.
    """
    if doc_type not in DOC_TYPES:
        raise ValueError(f"unknown document type: {doc_type}")
    prefix, model = DOC_TYPES[doc_type]

    value = _increment(db, tenant_id, doc_type)
    if value is None:
        existing = db.execute(
            select(func.count()).select_from(model).where(model.tenant_id == tenant_id)
        ).scalar_one()
        try:
            db.add(DocumentCounter(tenant_id=tenant_id, doc_type=doc_type, value=existing + 1))
            db.flush()
            value = existing + 1
        except IntegrityError:
            # başka bir istek sayacı bizden önce oluşturdu
            db.rollback()
            logger.info("Counter race for tenant=%s type=%s, retrying increment", tenant_id, doc_type)
            value = _increment(db, tenant_id, doc_type)
            if value is None:
                raise

    return format_number(prefix, value)
