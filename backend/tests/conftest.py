# backend/tests/conftest.py
import os
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.api import deps as app_deps
from app.core.security import create_access_token
from app.models import Base, Tenant, User

# -----------------------------
# Test DB: ayrı bir SQLite dosyası
# -----------------------------
TEST_DB_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "test_api.db"))
TEST_DB_URL = f"sqlite:///{TEST_DB_PATH}"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """App'in get_db bağımlılığını test DB ile değiştirir."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[app_deps.get_db] = override_get_db


# -----------------------------
# Fixtures
# -----------------------------
@pytest.fixture(scope="session", autouse=True)
def _test_db_file():
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)
    yield
    engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture(autouse=True)
def _clean_schema():
    # her test boş şemayla başlar
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # context manager yok: lifespan (create_all) uygulama DB'sine dokunmaz
    return TestClient(app)


def _seed_tenant(slug: str, email: str) -> dict:
    session = TestingSessionLocal()
    try:
        tenant = Tenant(name=slug.title(), slug=slug)
        session.add(tenant)
        session.flush()
        user = User(
            tenant_id=tenant.id,
            email=email,
            name="Owner",
            password_hash="x",
            business_details={"business_name": f"{slug.title()} Solar"},
        )
        session.add(user)
        session.commit()
        token = create_access_token(subject=str(user.id), tenant_id=tenant.id)
        return {
            "tenant_id": tenant.id,
            "user_id": user.id,
            "headers": {"Authorization": f"Bearer {token}"},
        }
    finally:
        session.close()


@pytest.fixture
def tenant_a():
    return _seed_tenant("alpha", "owner@alpha.example.com")


@pytest.fixture
def tenant_b():
    return _seed_tenant("beta", "owner@beta.example.com")


@pytest.fixture
def auth(tenant_a):
    return tenant_a["headers"]


# -----------------------------
# Yardımcılar
# -----------------------------
def png_bytes(width: int, height: int, color=(0, 86, 179, 255)) -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def quotation_body(**overrides) -> dict:
    body = {
        "customer_id": 1,
        "customer_name": "Ravi Kumar",
        "customer_email": "ravi@example.com",
        "customer_phone": "9876543210",
        "customer_address": {"street": "12 MG Road", "city": "Chennai", "state": "TN", "pincode": "600001"},
        "items": [
            {"product_name": "Solar Panel", "quantity": 2, "price": 100, "tax_rate": 18},
        ],
        "include_gst": True,
    }
    body.update(overrides)
    return body
