# backend/tests/test_auth_dashboard_api.py
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.exc import OperationalError

from app.api import dashboard
from app.core.config import settings
from app.core.security import create_access_token, decode_token
from app.main import app
from app.models import Customer, utcnow
from conftest import quotation_body


# -----------------------------
# Auth
# -----------------------------
def test_signup_login_me(client):
    r = client.post(
        "/auth/signup",
        json={
            "tenant_name": "Sunrise Energy",
            "tenant_slug": "sunrise",
            "name": "Meena",
            "email": "Meena@Example.com",
            "password": "secret123",
        },
    )
    assert r.status_code == 201
    token = r.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["email"] == "meena@example.com"

    profile = client.get("/business-settings", headers={"Authorization": f"Bearer {token}"}).json()
    assert profile["business_details"]["business_name"] == "Sunrise Energy"

    ok = client.post("/auth/login", json={"tenant_slug": "sunrise", "email": "meena@example.com", "password": "secret123"})
    assert ok.status_code == 200
    bad = client.post("/auth/login", json={"tenant_slug": "sunrise", "email": "meena@example.com", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid credentials"}

    dup = client.post(
        "/auth/signup",
        json={"tenant_name": "Other", "tenant_slug": "sunrise", "name": "X", "email": "x@example.com", "password": "secret123"},
    )
    assert dup.status_code == 400


def test_invalid_and_foreign_tokens(client, tenant_a):
    assert client.get("/customers", headers={"Authorization": "Bearer garbage"}).json() == {"error": "Invalid token"}

    # kullanıcı başka tenant'ı iddia ediyor
    forged = create_access_token(subject=str(tenant_a["user_id"]), tenant_id=tenant_a["tenant_id"] + 99)
    r = client.get("/customers", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401

    expired = create_access_token(subject=str(tenant_a["user_id"]), tenant_id=tenant_a["tenant_id"], expires_minutes=-1)
    assert client.get("/customers", headers={"Authorization": f"Bearer {expired}"}).status_code == 401


# -----------------------------
# Dashboard
# -----------------------------
def test_dashboard_counts_and_change(client, auth, tenant_a, tenant_b, db):
    old = utcnow() - timedelta(days=60)
    for name in ("Old 1", "Old 2"):
        db.add(Customer(tenant_id=tenant_a["tenant_id"], name=name, created_at=old, updated_at=old))
    db.commit()

    client.post("/customers", json={"name": "New"}, headers=auth)
    client.post("/quotations", json=quotation_body(), headers=auth)
    client.post("/customers", json={"name": "Other tenant"}, headers=tenant_b["headers"])

    stats = client.get("/dashboard/stats", headers=auth).json()
    assert stats["customers"] == {"count": 3, "change": 50}
    assert stats["quotations"] == {"count": 1, "change": 100}
    assert stats["products"] == {"count": 0, "change": 0}
    assert set(stats) == set(dashboard.STAT_MODELS)


# -----------------------------
# Error shape
# -----------------------------
def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_database_outage_maps_to_503(auth, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(dashboard, "_count", broken)
    r = TestClient(app, raise_server_exceptions=False).get("/dashboard/stats", headers=auth)
    assert r.status_code == 503
    assert r.headers["retry-after"] == "1"
    assert r.json() == {"error": "Database temporarily unavailable"}


def test_unexpected_error_maps_to_500(auth, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(dashboard, "percent_change", boom)
    r = TestClient(app, raise_server_exceptions=False).get("/dashboard/stats", headers=auth)
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}


def test_decode_token_requires_tenant_claim():
    no_tenant = jwt.encode({"sub": "1"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(ValueError, match="Invalid token payload"):
        decode_token(no_tenant)

    claims = decode_token(create_access_token(subject="7", tenant_id=3))
    assert (claims.user_id, claims.tenant_id) == (7, 3)
