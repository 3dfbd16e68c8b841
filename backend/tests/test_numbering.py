# backend/tests/test_numbering.py
from datetime import date

import pytest

from app.api.numbering import format_number, next_document_number
from app.models import Quotation


def _add_quotation(db, tenant_id, number):
    db.add(Quotation(
        tenant_id=tenant_id,
        quotation_number=number,
        customer_id=1,
        customer_name="Seed",
        valid_until=date.today(),
    ))
    db.commit()


def test_format_number_pads_to_four_digits():
    assert format_number("QUO", 7) == "QUO-0007"
    assert format_number("INV", 12345) == "INV-12345"


def test_first_number_is_one(db, tenant_a):
    assert next_document_number(db, tenant_a["tenant_id"], "quotation") == "QUO-0001"
    assert next_document_number(db, tenant_a["tenant_id"], "invoice") == "INV-0001"
    assert next_document_number(db, tenant_a["tenant_id"], "proposal") == "PROP-0001"


def test_counter_is_seeded_from_existing_documents(db, tenant_a):
    tid = tenant_a["tenant_id"]
    for n in ("OLD-1", "OLD-2", "OLD-3"):
        _add_quotation(db, tid, n)

    assert next_document_number(db, tid, "quotation") == "QUO-0004"
    assert next_document_number(db, tid, "quotation") == "QUO-0005"


def test_counters_are_per_tenant(db, tenant_a, tenant_b):
    assert next_document_number(db, tenant_a["tenant_id"], "quotation") == "QUO-0001"
    assert next_document_number(db, tenant_a["tenant_id"], "quotation") == "QUO-0002"
    assert next_document_number(db, tenant_b["tenant_id"], "quotation") == "QUO-0001"


def test_unknown_document_type(db, tenant_a):
    with pytest.raises(ValueError):
        next_document_number(db, tenant_a["tenant_id"], "receipt")
