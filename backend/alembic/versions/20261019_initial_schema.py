"""initial schema: tenants, users, customers, products, documents, brand images, counters

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19 10:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _tenant_fk() -> sa.Column:
    return sa.Column("tenant_id", sa.Integer, sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    ]


def _line_item_columns():
    return [
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("product_id", sa.Integer, nullable=True),
        sa.Column("product_name", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("quantity", sa.Numeric(18, 3), nullable=False),
        sa.Column("unit", sa.String, nullable=False, server_default="pcs"),
        sa.Column("price", sa.Numeric(18, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(9, 4), nullable=False, server_default="0"),
    ]


def _customer_snapshot_columns():
    return [
        sa.Column("customer_id", sa.Integer, nullable=False),
        sa.Column("customer_name", sa.String, nullable=False),
        sa.Column("customer_email", sa.String, nullable=True),
        sa.Column("customer_phone", sa.String, nullable=True),
        sa.Column("customer_address", sa.JSON, nullable=True),
    ]


def _totals_columns():
    return [
        sa.Column("subtotal", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(18, 2), nullable=False, server_default="0"),
    ]


def upgrade() -> None:
    # --- core ---
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("slug", sa.String, nullable=False, unique=True),
        sa.Column("name", sa.String, nullable=False),
    )
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("email", sa.String, nullable=False),
        sa.Column("name", sa.String, nullable=False, server_default=""),
        sa.Column("password_hash", sa.String, nullable=False),
        sa.Column("business_details", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("tenant_id", "email", name="uix_user_tenant_email"),
    )

    # --- master data ---
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("email", sa.String, nullable=True),
        sa.Column("phone", sa.String, nullable=True),
        sa.Column("gst_number", sa.String, nullable=True),
        sa.Column("address", sa.JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_customers_tenant_id", "customers", ["tenant_id"])

    op.create_table(
        "products",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("unit", sa.String, nullable=False, server_default="pcs"),
        sa.Column("hsn_code", sa.String, nullable=True),
        sa.Column("tax_rate", sa.Numeric(9, 4), nullable=False, server_default="18"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_product_price"),
        sa.CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="ck_product_tax_rate"),
    )
    op.create_index("ix_products_tenant_id", "products", ["tenant_id"])
    op.create_index("ix_products_tenant_active", "products", ["tenant_id", "is_active"])

    # --- documents ---
    op.create_table(
        "quotations",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("quotation_number", sa.String(32), nullable=False),
        *_customer_snapshot_columns(),
        *_totals_columns(),
        sa.Column("include_gst", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("hide_item_prices", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("status", sa.String(16), nullable=False, server_default="sent"),
        sa.Column("valid_until", sa.Date, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("terms", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "quotation_number", name="uix_quotation_tenant_number"),
    )
    op.create_index("ix_quotations_tenant_id", "quotations", ["tenant_id"])

    op.create_table(
        "quotation_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("quotation_id", sa.Integer, sa.ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False),
        *_line_item_columns(),
        sa.Column("total", sa.Numeric(18, 2), nullable=False, server_default="0"),
    )
    op.create_index("ix_quotation_items_quotation_id", "quotation_items", ["quotation_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("invoice_number", sa.String(32), nullable=False),
        *_customer_snapshot_columns(),
        *_totals_columns(),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("paid_date", sa.Date, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("terms", sa.Text, nullable=True),
        sa.Column("quotation_id", sa.Integer, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "invoice_number", name="uix_invoice_tenant_number"),
    )
    op.create_index("ix_invoices_tenant_id", "invoices", ["tenant_id"])
    op.create_index("ix_invoices_quotation_id", "invoices", ["quotation_id"])

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("invoice_id", sa.Integer, sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        *_line_item_columns(),
        sa.Column("total", sa.Numeric(18, 2), nullable=False, server_default="0"),
    )
    op.create_index("ix_invoice_items_invoice_id", "invoice_items", ["invoice_id"])

    op.create_table(
        "presets",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_presets_tenant_id", "presets", ["tenant_id"])

    op.create_table(
        "preset_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("preset_id", sa.Integer, sa.ForeignKey("presets.id", ondelete="CASCADE"), nullable=False),
        *_line_item_columns(),
    )
    op.create_index("ix_preset_items_preset_id", "preset_items", ["preset_id"])

    op.create_table(
        "proposals",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("quotation_id", sa.Integer, nullable=True),
        sa.Column("proposal_number", sa.String(32), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("client_name", sa.String, nullable=False),
        sa.Column("project_location", sa.String, nullable=False),
        sa.Column("plant_capacity", sa.Numeric(12, 3), nullable=False),
        sa.Column("project_type", sa.String(32), nullable=False, server_default="On-Grid Solar"),
        sa.Column("roof_type", sa.String(32), nullable=False, server_default="Sheeted Roof"),
        sa.Column("price_per_kw", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("gst_rate", sa.Numeric(9, 4), nullable=False, server_default="8.9"),
        sa.Column("gst_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("advance_percent", sa.Numeric(9, 4), nullable=False, server_default="70"),
        sa.Column("balance_percent", sa.Numeric(9, 4), nullable=False, server_default="30"),
        sa.Column("payment_terms_notes", sa.Text, nullable=True),
        sa.Column("materials", sa.JSON, nullable=False),
        sa.Column("roi", sa.JSON, nullable=False),
        sa.Column("technical_summary", sa.Text, nullable=True),
        sa.Column("financial_summary", sa.Text, nullable=True),
        sa.Column("terms", sa.JSON, nullable=False),
        sa.Column("valid_until", sa.Date, nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "proposal_number", name="uix_proposal_tenant_number"),
    )
    op.create_index("ix_proposals_tenant_id", "proposals", ["tenant_id"])
    op.create_index("ix_proposals_quotation_id", "proposals", ["quotation_id"])

    # --- gallery / numbering ---
    op.create_table(
        "brand_images",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("image_url", sa.Text, nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("width", sa.Integer, nullable=True),
        sa.Column("height", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_brand_images_tenant_order", "brand_images", ["tenant_id", "order"])

    op.create_table(
        "document_counters",
        sa.Column("id", sa.Integer, primary_key=True),
        _tenant_fk(),
        sa.Column("doc_type", sa.String(16), nullable=False),
        sa.Column("value", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("tenant_id", "doc_type", name="uix_counter_tenant_type"),
    )


def downgrade() -> None:
    for table in (
        "document_counters",
        "brand_images",
        "proposals",
        "preset_items",
        "presets",
        "invoice_items",
        "invoices",
        "quotation_items",
        "quotations",
        "products",
        "customers",
        "users",
        "tenants",
    ):
        op.drop_table(table)
