"""create properties, tenants, invoices, payments and pdcs tables

Revision ID: 5c2e9a4b7f10
Revises: 3b1f0c7d2a91
Create Date: 2026-03-09 14:41:05.527391

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5c2e9a4b7f10"
down_revision: Union[str, Sequence[str], None] = "3b1f0c7d2a91"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    "invoicestatus": ("DRAFT", "SENT", "PARTIALLY_PAID", "PAID", "OVERDUE", "CANCELLED"),
    "paymentmethod": ("CASH", "BANK_TRANSFER", "CARD", "CHEQUE", "PDC"),
    "pdcstatus": (
        "RECEIVED",
        "DUE",
        "DEPOSITED",
        "CLEARED",
        "BOUNCED",
        "REPLACED",
        "WITHDRAWN",
        "CANCELLED",
    ),
}

TABLES = ("pdcs", "payments", "invoices", "tenants", "properties")


def _enum(bind, name: str):
    values = ENUMS[name]
    if bind.dialect.name == "postgresql":
        enum_type = postgresql.ENUM(*values, name=name, create_type=False)
        enum_type.create(bind, checkfirst=True)
        return enum_type
    return sa.Enum(*values, name=name)


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=12, scale=2), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    invoice_status = _enum(bind, "invoicestatus")
    payment_method = _enum(bind, "paymentmethod")
    pdc_status = _enum(bind, "pdcstatus")

    if "properties" not in existing_tables:
        op.create_table(
            "properties",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("deleted_at", sa.DateTime(), nullable=True),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("address", sa.String(length=500), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_properties_name", "properties", ["name"], unique=False)
        op.create_index("ix_properties_deleted_at", "properties", ["deleted_at"], unique=False)

    if "tenants" not in existing_tables:
        op.create_table(
            "tenants",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("property_id", sa.Integer(), nullable=False),
            sa.Column("full_name", sa.String(length=255), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_tenants_property_id", "tenants", ["property_id"], unique=False)
        op.create_index("ix_tenants_email", "tenants", ["email"], unique=False)

    if "invoices" not in existing_tables:
        op.create_table(
            "invoices",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("invoice_number", sa.String(length=20), nullable=False),
            sa.Column("tenant_id", sa.Integer(), nullable=False),
            sa.Column("property_id", sa.Integer(), nullable=False),
            sa.Column("invoice_date", sa.Date(), nullable=False),
            sa.Column("due_date", sa.Date(), nullable=False),
            sa.Column("sent_at", sa.DateTime(), nullable=True),
            sa.Column("paid_at", sa.DateTime(), nullable=True),
            _money("base_rent"),
            _money("service_charges"),
            _money("parking_fees"),
            _money("late_fee"),
            _money("total_amount"),
            _money("paid_amount"),
            _money("balance_amount"),
            sa.Column("status", invoice_status, nullable=False),
            sa.Column("late_fee_applied", sa.Boolean(), nullable=False),
            sa.Column("last_reminder_sent_on", sa.Date(), nullable=True),
            sa.Column("notes", sa.String(length=500), nullable=True),
            sa.Column("created_by", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
            sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
            sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"], unique=True)
        op.create_index("ix_invoices_tenant_id", "invoices", ["tenant_id"], unique=False)
        op.create_index("ix_invoices_property_id", "invoices", ["property_id"], unique=False)
        op.create_index("ix_invoices_invoice_date", "invoices", ["invoice_date"], unique=False)
        op.create_index("ix_invoices_due_date", "invoices", ["due_date"], unique=False)
        op.create_index("ix_invoices_status", "invoices", ["status"], unique=False)

    if "payments" not in existing_tables:
        op.create_table(
            "payments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("payment_number", sa.String(length=20), nullable=False),
            sa.Column("invoice_id", sa.Integer(), nullable=False),
            sa.Column("tenant_id", sa.Integer(), nullable=False),
            _money("amount"),
            sa.Column("payment_date", sa.Date(), nullable=False),
            sa.Column("method", payment_method, nullable=False),
            sa.Column("reference", sa.String(length=100), nullable=True),
            sa.Column("notes", sa.String(length=500), nullable=True),
            sa.Column("recorded_by", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"]),
            sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
            sa.ForeignKeyConstraint(["recorded_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_payments_payment_number", "payments", ["payment_number"], unique=True)
        op.create_index("ix_payments_invoice_id", "payments", ["invoice_id"], unique=False)
        op.create_index("ix_payments_tenant_id", "payments", ["tenant_id"], unique=False)

    if "pdcs" not in existing_tables:
        op.create_table(
            "pdcs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("cheque_number", sa.String(length=50), nullable=False),
            sa.Column("bank_name", sa.String(length=100), nullable=False),
            sa.Column("tenant_id", sa.Integer(), nullable=False),
            sa.Column("invoice_id", sa.Integer(), nullable=True),
            _money("amount"),
            sa.Column("cheque_date", sa.Date(), nullable=False),
            sa.Column("deposit_date", sa.Date(), nullable=True),
            sa.Column("cleared_date", sa.Date(), nullable=True),
            sa.Column("bounced_date", sa.Date(), nullable=True),
            sa.Column("withdrawal_date", sa.Date(), nullable=True),
            sa.Column("status", pdc_status, nullable=False),
            sa.Column("bounce_reason", sa.String(length=255), nullable=True),
            sa.Column("withdrawal_reason", sa.String(length=255), nullable=True),
            sa.Column("replacement_pdc_id", sa.Integer(), nullable=True),
            sa.Column("original_pdc_id", sa.Integer(), nullable=True),
            sa.Column("notes", sa.String(length=500), nullable=True),
            sa.Column("created_by", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
            sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"]),
            sa.ForeignKeyConstraint(["replacement_pdc_id"], ["pdcs.id"]),
            sa.ForeignKeyConstraint(["original_pdc_id"], ["pdcs.id"]),
            sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("cheque_number", "tenant_id", name="uq_pdcs_cheque_number_tenant_id"),
        )
        op.create_index("ix_pdcs_cheque_number", "pdcs", ["cheque_number"], unique=False)
        op.create_index("ix_pdcs_tenant_id", "pdcs", ["tenant_id"], unique=False)
        op.create_index("ix_pdcs_invoice_id", "pdcs", ["invoice_id"], unique=False)
        op.create_index("ix_pdcs_cheque_date", "pdcs", ["cheque_date"], unique=False)
        op.create_index("ix_pdcs_status", "pdcs", ["status"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    for table in TABLES:
        if table not in existing_tables:
            continue
        for idx in inspector.get_indexes(table):
            if idx["name"] and idx["name"].startswith("ix_"):
                op.drop_index(idx["name"], table_name=table)
        op.drop_table(table)

    if bind.dialect.name == "postgresql":
        for name in ENUMS:
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)
