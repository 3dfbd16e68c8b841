# backend/tests/test_proposals_api.py
from datetime import date, timedelta

from conftest import quotation_body


def proposal_body(**overrides):
    body = {
        "client_name": "Green Valley School",
        "project_location": "Coimbatore, TN",
        "plant_capacity": 10,
        "price_per_kw": 45000,
        "materials": [
            {"description": "Solar Modules", "specification": "540Wp Mono PERC", "warranty": "25 years"},
            {"description": "Inverter", "specification": "10kW On-Grid", "warranty": "8 years"},
        ],
        "terms": ["Net metering by customer", "  ", "Civil work excluded"],
    }
    body.update(overrides)
    return body


def _create(client, headers, **overrides):
    r = client.post("/proposals", json=proposal_body(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_computes_amounts_and_roi(client, auth):
    p = _create(client, auth)
    assert p["proposal_number"] == "PROP-0001"
    assert p["date"] == date.today().isoformat()
    assert p["valid_until"] == (date.today() + timedelta(days=7)).isoformat()
    assert (p["amount"], p["gst_amount"], p["total_amount"]) == (450000.0, 40050.0, 490050.0)
    assert (p["gst_rate"], p["advance_percent"], p["balance_percent"]) == (8.9, 70.0, 30.0)
    assert p["status"] == "draft"
    assert p["roi"]["energy_generation_per_year"] == 16000
    assert p["roi"]["trees_equivalent"] == 620
    assert p["terms"] == ["Net metering by customer", "Civil work excluded"]


def test_roi_override_is_partial(client, auth):
    p = _create(client, auth, roi={"payback_period_min": 3, "payback_period_max": 4})
    assert p["roi"]["payback_period_min"] == 3
    assert p["roi"]["payback_period_max"] == 4
    assert p["roi"]["co2_eliminated_total"] == 286


def test_roi_payback_range_must_be_ordered(client, auth):
    r = client.post("/proposals", json=proposal_body(roi={"payback_period_min": 5, "payback_period_max": 3}), headers=auth)
    assert r.status_code == 400
    assert "payback_period_min must not exceed payback_period_max" in r.json()["error"]

    # verilmeyen üst sınır varsayılan 3.5 yıl
    r = client.post("/proposals", json=proposal_body(roi={"payback_period_min": 4}), headers=auth)
    assert r.status_code == 400
    assert client.get("/proposals", headers=auth).json() == []


def test_update_recomputes(client, auth):
    p = _create(client, auth)
    r = client.put(
        f"/proposals/{p['id']}",
        json=proposal_body(plant_capacity=5, price_per_kw=50000, gst_rate=12, status="sent"),
        headers=auth,
    )
    assert r.status_code == 200
    body = r.json()
    assert (body["amount"], body["gst_amount"], body["total_amount"]) == (250000.0, 30000.0, 280000.0)
    assert body["roi"]["energy_generation_per_year"] == 8000
    assert body["status"] == "sent"
    assert body["proposal_number"] == "PROP-0001"


def test_uneven_payment_split_is_accepted(client, auth):
    p = _create(client, auth, advance_percent=60, balance_percent=30)
    assert (p["advance_percent"], p["balance_percent"]) == (60.0, 30.0)


def test_validation_errors(client, auth):
    assert client.post("/proposals", json=proposal_body(plant_capacity=0), headers=auth).status_code == 400
    assert client.post("/proposals", json=proposal_body(roof_type="Tent"), headers=auth).status_code == 400
    body = proposal_body()
    body.pop("client_name")
    r = client.post("/proposals", json=body, headers=auth)
    assert r.json() == {"error": "Required field missing: client_name"}


def test_quotation_link_must_be_same_tenant(client, auth, tenant_b):
    q = client.post("/quotations", json=quotation_body(), headers=auth).json()
    assert _create(client, auth, quotation_id=q["id"])["quotation_id"] == q["id"]

    r = client.post("/proposals", json=proposal_body(quotation_id=q["id"]), headers=tenant_b["headers"])
    assert r.status_code == 404


def test_duplicate_resets_status_and_dates(client, auth):
    p = _create(client, auth, status="accepted", valid_until="2020-01-01")
    r = client.post(f"/proposals/{p['id']}/duplicate", headers=auth)
    assert r.status_code == 201
    dup = r.json()
    assert dup["proposal_number"] == "PROP-0002"
    assert dup["status"] == "draft"
    assert dup["valid_until"] == (date.today() + timedelta(days=7)).isoformat()
    assert dup["materials"] == p["materials"]
    assert dup["roi"] == p["roi"]
    assert dup["total_amount"] == p["total_amount"]


def test_list_get_delete_isolated(client, auth, tenant_b):
    p = _create(client, auth)
    assert [x["id"] for x in client.get("/proposals", headers=auth).json()] == [p["id"]]
    assert client.get("/proposals", headers=tenant_b["headers"]).json() == []
    assert client.get(f"/proposals/{p['id']}", headers=tenant_b["headers"]).status_code == 404
    other = tenant_b["headers"]
    assert client.put(f"/proposals/{p['id']}", json=proposal_body(client_name="Taken"), headers=other).status_code == 404
    assert client.delete(f"/proposals/{p['id']}", headers=other).status_code == 404
    assert client.get(f"/proposals/{p['id']}", headers=auth).json() == p
    assert client.delete(f"/proposals/{p['id']}", headers=auth).status_code == 200
    assert client.get(f"/proposals/{p['id']}", headers=auth).status_code == 404


def test_pdf_and_html(client, auth):
    client.put(
        "/business-settings",
        json={"business_name": "Sunrise Energy", "website": "www.sunrise.example.com", "phone": "+91 90000 00000"},
        headers=auth,
    )
    p = _create(client, auth)

    pdf = client.get(f"/proposals/{p['id']}/pdf", headers=auth)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.headers["content-disposition"] == 'attachment; filename="Proposal-PROP-0001.pdf"'
    assert pdf.content.startswith(b"%PDF")

    html = client.get(f"/proposals/{p['id']}/html", headers=auth)
    assert html.status_code == 200
    assert html.headers["content-type"].startswith("text/html")
    text = html.text
    assert "Green Valley School" in text
    assert "Sunrise Energy" in text
    assert "4,90,050.00" in text
    assert "Page 05" in text
    assert "Solar Modules" in text
