# backend/tests/test_invoices_api.py
from datetime import date, timedelta

from conftest import quotation_body

DUE = (date.today() + timedelta(days=10)).isoformat()


def invoice_body(**overrides):
    body = quotation_body(due_date=DUE)
    body.pop("include_gst")
    body.update(overrides)
    return body


def test_create_always_applies_tax(client, auth):
    r = client.post("/invoices", json=invoice_body(), headers=auth)
    assert r.status_code == 201, r.text
    inv = r.json()
    assert inv["invoice_number"] == "INV-0001"
    assert (inv["subtotal"], inv["tax_amount"], inv["total"]) == (200.0, 36.0, 236.0)
    assert inv["status"] == "draft"
    assert inv["paid_date"] is None


def test_due_date_is_required(client, auth):
    body = invoice_body()
    body.pop("due_date")
    r = client.post("/invoices", json=body, headers=auth)
    assert r.status_code == 400
    assert r.json()["error"] == "Required field missing: due_date"


def test_paid_status_stamps_paid_date(client, auth):
    inv = client.post("/invoices", json=invoice_body(), headers=auth).json()
    r = client.put(f"/invoices/{inv['id']}", json=invoice_body(status="paid"), headers=auth)
    assert r.status_code == 200
    assert r.json()["paid_date"] == date.today().isoformat()

    explicit = (date.today() - timedelta(days=2)).isoformat()
    r = client.put(
        f"/invoices/{inv['id']}",
        json=invoice_body(status="paid", paid_date=explicit),
        headers=auth,
    )
    assert r.json()["paid_date"] == explicit


def test_update_keeps_quotation_link(client, auth):
    q = client.post("/quotations", json=quotation_body(), headers=auth).json()
    inv = client.post(f"/quotations/{q['id']}/invoice", json={"due_date": DUE}, headers=auth).json()

    r = client.put(f"/invoices/{inv['id']}", json=invoice_body(notes="updated"), headers=auth)
    assert r.status_code == 200
    assert r.json()["quotation_id"] == q["id"]
    assert r.json()["notes"] == "updated"


def test_invalid_status_is_rejected(client, auth):
    r = client.post("/invoices", json=invoice_body(status="unknown"), headers=auth)
    assert r.status_code == 400


def test_tenant_isolation(client, auth, tenant_b):
    inv = client.post("/invoices", json=invoice_body(), headers=auth).json()
    assert client.get(f"/invoices/{inv['id']}", headers=tenant_b["headers"]).status_code == 404
    assert client.get("/invoices", headers=tenant_b["headers"]).json() == []

    other = tenant_b["headers"]
    assert client.put(f"/invoices/{inv['id']}", json=invoice_body(notes="hijack"), headers=other).status_code == 404
    assert client.delete(f"/invoices/{inv['id']}", headers=other).status_code == 404
    assert client.get(f"/invoices/{inv['id']}", headers=auth).json() == inv


def test_quotation_link_must_belong_to_tenant(client, auth, tenant_b):
    foreign = client.post("/quotations", json=quotation_body(), headers=tenant_b["headers"]).json()
    r = client.post("/invoices", json=invoice_body(quotation_id=foreign["id"]), headers=auth)
    assert r.status_code == 404
    assert r.json() == {"error": "Quotation not found"}
    assert client.get("/invoices", headers=auth).json() == []

    own = client.post("/quotations", json=quotation_body(), headers=auth).json()
    inv = client.post("/invoices", json=invoice_body(quotation_id=own["id"]), headers=auth).json()
    assert inv["quotation_id"] == own["id"]

    r = client.put(f"/invoices/{inv['id']}", json=invoice_body(quotation_id=foreign["id"]), headers=auth)
    assert r.status_code == 404
    assert client.get(f"/invoices/{inv['id']}", headers=auth).json()["quotation_id"] == own["id"]


def test_delete_and_pdf(client, auth):
    inv = client.post("/invoices", json=invoice_body(), headers=auth).json()

    pdf = client.get(f"/invoices/{inv['id']}/pdf", headers=auth)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert 'filename="Invoice-INV-0001.pdf"' in pdf.headers["content-disposition"]

    assert client.delete(f"/invoices/{inv['id']}", headers=auth).json() == {"message": "Invoice deleted successfully"}
    assert client.get(f"/invoices/{inv['id']}", headers=auth).status_code == 404
