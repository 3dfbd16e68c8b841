# backend/app/models/__init__.py
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Date,
    ForeignKey,
    UniqueConstraint,
    Index,
    CheckConstraint,
    Numeric,
    Boolean,
    JSON,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    # naive UTC: SQLite ve Postgres'te aynı şekilde karşılaştırılabilir
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =========================
# Core (Tenant / User)
# =========================
class Tenant(Base):
    __tablename__ = "tenants"
    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)

    email = Column(String, nullable=False)
    name = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)

    # BusinessProfile: tenant sahibinin kaydına gömülü (ad, adres, logo, banka ...)
    business_details = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("tenant_id", "email", name="uix_user_tenant_email"),)


# =========================
# Customers & Products
# =========================
class Customer(Base):
    __tablename__ = "customers"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    gst_number = Column(String, nullable=True)
    address = Column(JSON, nullable=True)  # street/city/state/pincode/country

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(18, 2), nullable=False, default=0)
    unit = Column(String, nullable=False, default="pcs")
    hsn_code = Column(String, nullable=True)
    tax_rate = Column(Numeric(9, 4), nullable=False, default=18)

    # Tek soft-state: pasif ürünler yeni belgelerde seçilmez, eski belgelerde kalır
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price"),
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="ck_product_tax_rate"),
        Index("ix_products_tenant_active", "tenant_id", "is_active"),
    )


# =========================
# Line items (belgeye gömülü snapshot satırları)
# =========================
class _LineItemColumns:
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(Integer, nullable=True)  # FK yok: ürün silinse de snapshot kalır
    product_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Numeric(18, 3), nullable=False)
    unit = Column(String, nullable=False, default="pcs")
    price = Column(Numeric(18, 2), nullable=False)
    tax_rate = Column(Numeric(9, 4), nullable=False, default=0)


class QuotationItem(_LineItemColumns, Base):
    __tablename__ = "quotation_items"
    id = Column(Integer, primary_key=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    total = Column(Numeric(18, 2), nullable=False, default=0)

    quotation = relationship("Quotation", back_populates="items")


class InvoiceItem(_LineItemColumns, Base):
    __tablename__ = "invoice_items"
    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    total = Column(Numeric(18, 2), nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="items")


class PresetItem(_LineItemColumns, Base):
    __tablename__ = "preset_items"
    id = Column(Integer, primary_key=True, index=True)
    preset_id = Column(Integer, ForeignKey("presets.id", ondelete="CASCADE"), nullable=False, index=True)

    preset = relationship("Preset", back_populates="items")


# =========================
# Documents
# =========================
class _CustomerSnapshotColumns:
    customer_id = Column(Integer, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_address = Column(JSON, nullable=True)


class Quotation(_CustomerSnapshotColumns, Base):
    __tablename__ = "quotations"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    quotation_number = Column(String(32), nullable=False)

    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(18, 2), nullable=False, default=0)
    total = Column(Numeric(18, 2), nullable=False, default=0)
    include_gst = Column(Boolean, nullable=False, default=True)
    hide_item_prices = Column(Boolean, nullable=False, default=False)

    status = Column(String(16), nullable=False, default="sent")  # sent|accepted|rejected|expired
    valid_until = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "quotation_number", name="uix_quotation_tenant_number"),
    )


class Invoice(_CustomerSnapshotColumns, Base):
    __tablename__ = "invoices"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_number = Column(String(32), nullable=False)

    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(18, 2), nullable=False, default=0)
    total = Column(Numeric(18, 2), nullable=False, default=0)

    status = Column(String(16), nullable=False, default="draft")  # draft|sent|paid|overdue|cancelled
    due_date = Column(Date, nullable=False)
    paid_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    quotation_id = Column(Integer, nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uix_invoice_tenant_number"),
    )


class Preset(Base):
    __tablename__ = "presets"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "PresetItem",
        back_populates="preset",
        cascade="all, delete-orphan",
        order_by="PresetItem.position",
        lazy="selectin",
    )


class Proposal(Base):
    __tablename__ = "proposals"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    quotation_id = Column(Integer, nullable=True, index=True)
    proposal_number = Column(String(32), nullable=False)
    date = Column(Date, nullable=False)

    client_name = Column(String, nullable=False)
    project_location = Column(String, nullable=False)

    plant_capacity = Column(Numeric(12, 3), nullable=False)  # kW
    project_type = Column(String(32), nullable=False, default="On-Grid Solar")
    roof_type = Column(String(32), nullable=False, default="Sheeted Roof")

    price_per_kw = Column(Numeric(18, 2), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    gst_rate = Column(Numeric(9, 4), nullable=False, default=8.9)
    gst_amount = Column(Numeric(18, 2), nullable=False)
    total_amount = Column(Numeric(18, 2), nullable=False)

    advance_percent = Column(Numeric(9, 4), nullable=False, default=70)
    balance_percent = Column(Numeric(9, 4), nullable=False, default=30)
    payment_terms_notes = Column(Text, nullable=True)

    materials = Column(JSON, nullable=False, default=list)  # [{description, specification, warranty}]
    roi = Column(JSON, nullable=False, default=dict)
    technical_summary = Column(Text, nullable=True)
    financial_summary = Column(Text, nullable=True)
    terms = Column(JSON, nullable=False, default=list)  # [str]

    valid_until = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default="draft")  # draft|sent|accepted|rejected|expired

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("tenant_id", "proposal_number", name="uix_proposal_tenant_number"),
    )


# =========================
# Brand gallery
# =========================
class BrandImage(Base):
    __tablename__ = "brand_images"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    image_url = Column(Text, nullable=False)  # data URI
    order = Column(Integer, nullable=False, default=0)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (Index("ix_brand_images_tenant_order", "tenant_id", "order"),)


# =========================
# Numbering (tenant + belge tipi başına atomik sayaç)
# =========================
class DocumentCounter(Base):
    __tablename__ = "document_counters"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    doc_type = Column(String(16), nullable=False)  # quotation|invoice|proposal
    value = Column(Integer, nullable=False, default=0)

    __table_args__ = (UniqueConstraint("tenant_id", "doc_type", name="uix_counter_tenant_type"),)
