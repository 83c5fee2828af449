"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    "role": ("admin", "manager", "buyer", "warehouse", "accountant"),
    "supplier_status": ("active", "inactive", "blocked"),
    "requirement_status": ("pending", "approved", "rejected", "completed"),
    "priority": ("low", "medium", "high", "urgent"),
    "po_status": ("pending", "confirmed", "partial", "completed", "cancelled"),
    "reception_status": ("scheduled", "pending", "partial", "completed", "cancelled"),
    "reception_detail_status": ("pending", "partial", "completed", "rejected"),
    "output_status": ("pending", "approved", "completed", "cancelled"),
    "output_detail_status": ("pending", "completed"),
    "destination_type": ("department", "project", "branch", "client", "other"),
    "movement_type": ("reception", "output", "adjustment"),
    "invoice_status": ("pending", "partial", "paid", "cancelled"),
    "activity_type": ("create", "update", "delete"),
}


def _enum(name: str) -> sa.Enum:
    # Postgres: type créé une seule fois dans upgrade(), réutilisé par les colonnes
    values = ENUMS[name]
    return sa.Enum(*values, name=name).with_variant(
        postgresql.ENUM(*values, name=name, create_type=False), "postgresql"
    )


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("username", sa.String(64), nullable=False, unique=True),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("role", _enum("role"), nullable=False),
        sa.Column("department", sa.String(128)),
        sa.Column("email", sa.String(255)),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(200)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(64)),
        sa.Column("address", sa.String(500)),
        sa.Column("tax_id", sa.String(64)),
        sa.Column("notes", sa.Text),
        sa.Column("status", _enum("supplier_status"), nullable=False),
        _ts("created_at"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("category", sa.String(128), nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("min_stock", sa.Integer, nullable=False),
        sa.Column("current_stock", sa.Float, nullable=False),
        sa.Column("location", sa.String(64)),
        sa.Column("cost", sa.Float),
        sa.Column("supplier_id", sa.Integer, sa.ForeignKey("suppliers.id", ondelete="SET NULL")),
        _ts("created_at"),
        sa.CheckConstraint("min_stock >= 0", name="ck_product_min_stock_nonneg"),
    )

    op.create_table(
        "requirements",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("requestor_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("department_id", sa.String(128)),
        sa.Column("status", _enum("requirement_status"), nullable=False),
        sa.Column("priority", _enum("priority"), nullable=False),
        sa.Column("notes", sa.Text),
        _ts("due_date", nullable=True),
        _ts("created_at"),
    )

    op.create_table(
        "requirement_details",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "requirement_id",
            sa.Integer,
            sa.ForeignKey("requirements.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("product_id", sa.Integer, sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Float, nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("status", _enum("requirement_status"), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_requirement_detail_qty_pos"),
    )

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("supplier_id", sa.Integer, sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("requirement_id", sa.Integer, sa.ForeignKey("requirements.id", ondelete="SET NULL")),
        sa.Column("status", _enum("po_status"), nullable=False),
        sa.Column("total_amount", sa.Float),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("notes", sa.Text),
        _ts("expected_delivery_date", nullable=True),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL")),
        _ts("created_at"),
    )
    op.create_index("ix_purchase_orders_status_eta", "purchase_orders", ["status", "expected_delivery_date"])

    op.create_table(
        "purchase_order_details",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "purchase_order_id",
            sa.Integer,
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("product_id", sa.Integer, sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Float, nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("unit_price", sa.Float, nullable=False),
        sa.Column("total_price", sa.Float, nullable=False),
        sa.Column("notes", sa.Text),
        sa.CheckConstraint("quantity > 0", name="ck_po_detail_qty_pos"),
        sa.CheckConstraint("unit_price >= 0", name="ck_po_detail_unit_price_nonneg"),
    )

    op.create_table(
        "receptions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "purchase_order_id",
            sa.Integer,
            sa.ForeignKey("purchase_orders.id", ondelete="SET NULL"),
            index=True,
        ),
        sa.Column("supplier_id", sa.Integer, sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", _enum("reception_status"), nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("received_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL")),
        _ts("received_at"),
        _ts("created_at"),
    )

    op.create_table(
        "reception_details",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "reception_id",
            sa.Integer,
            sa.ForeignKey("receptions.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "purchase_order_detail_id",
            sa.Integer,
            sa.ForeignKey("purchase_order_details.id", ondelete="SET NULL"),
        ),
        sa.Column("product_id", sa.Integer, sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity_expected", sa.Float, nullable=False),
        sa.Column("quantity_received", sa.Float, nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("status", _enum("reception_detail_status"), nullable=False),
        sa.CheckConstraint("quantity_expected >= 0", name="ck_reception_detail_expected_nonneg"),
        sa.CheckConstraint("quantity_received >= 0", name="ck_reception_detail_received_nonneg"),
    )

    op.create_table(
        "outputs",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("destination_type", _enum("destination_type"), nullable=False),
        sa.Column("status", _enum("output_status"), nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("requested_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("approved_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL")),
        _ts("created_at"),
    )

    op.create_table(
        "output_details",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "output_id",
            sa.Integer,
            sa.ForeignKey("outputs.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("product_id", sa.Integer, sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Float, nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("status", _enum("output_detail_status"), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_output_detail_qty_pos"),
    )

    op.create_table(
        "inventory_movements",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "product_id",
            sa.Integer,
            sa.ForeignKey("products.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        ),
        sa.Column("quantity", sa.Float, nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("movement_type", _enum("movement_type"), nullable=False),
        sa.Column("reference_id", sa.Integer),
        sa.Column("reference_type", sa.String(32)),
        sa.Column("notes", sa.Text),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL")),
        _ts("created_at"),
        sa.CheckConstraint("quantity <> 0", name="ck_inventory_movement_qty_nonzero"),
    )
    op.create_index("ix_inventory_movements_product_time", "inventory_movements", ["product_id", "created_at"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("supplier_invoice_number", sa.String(64)),
        sa.Column("supplier_id", sa.Integer, sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("purchase_order_id", sa.Integer, sa.ForeignKey("purchase_orders.id", ondelete="SET NULL")),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", _enum("invoice_status"), nullable=False),
        _ts("issue_date"),
        _ts("due_date"),
        sa.Column("notes", sa.Text),
        _ts("created_at"),
        sa.CheckConstraint("amount >= 0", name="ck_invoice_amount_nonneg"),
    )
    op.create_index("ix_invoices_status_due", "invoices", ["status", "due_date"])

    op.create_table(
        "system_activities",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("activity_type", _enum("activity_type"), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=False),
        sa.Column("entity_id", sa.Integer),
        _ts("created_at"),
    )
    op.create_index("ix_system_activities_entity", "system_activities", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_system_activities_entity", table_name="system_activities")
    op.drop_table("system_activities")
    op.drop_index("ix_invoices_status_due", table_name="invoices")
    op.drop_table("invoices")
    op.drop_index("ix_inventory_movements_product_time", table_name="inventory_movements")
    op.drop_table("inventory_movements")
    op.drop_table("output_details")
    op.drop_table("outputs")
    op.drop_table("reception_details")
    op.drop_table("receptions")
    op.drop_table("purchase_order_details")
    op.drop_index("ix_purchase_orders_status_eta", table_name="purchase_orders")
    op.drop_table("purchase_orders")
    op.drop_table("requirement_details")
    op.drop_table("requirements")
    op.drop_table("products")
    op.drop_table("suppliers")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name in reversed(list(ENUMS)):
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)
