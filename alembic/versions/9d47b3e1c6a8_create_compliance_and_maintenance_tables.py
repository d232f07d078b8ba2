"""create compliance and preventive maintenance tables

Revision ID: 9d47b3e1c6a8
Revises: 5c2e9a4b7f10
Create Date: 2026-03-16 09:27:52.804113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "9d47b3e1c6a8"
down_revision: Union[str, Sequence[str], None] = "5c2e9a4b7f10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    "compliancefrequency": (
        "ONE_TIME",
        "MONTHLY",
        "QUARTERLY",
        "SEMI_ANNUALLY",
        "ANNUALLY",
        "BIANNUALLY",
    ),
    "complianceschedulestatus": ("UPCOMING", "DUE", "OVERDUE", "COMPLETED", "EXEMPT"),
    "recurrencetype": ("MONTHLY", "QUARTERLY", "SEMI_ANNUALLY", "ANNUALLY"),
    "pmschedulestatus": ("ACTIVE", "PAUSED", "COMPLETED"),
    "workorderstatus": ("OPEN", "ASSIGNED", "IN_PROGRESS", "COMPLETED", "CANCELLED"),
}

TABLES = ("work_orders", "pm_schedules", "compliance_schedules", "compliance_requirements")


def _enum(bind, name: str):
    values = ENUMS[name]
    if bind.dialect.name == "postgresql":
        enum_type = postgresql.ENUM(*values, name=name, create_type=False)
        enum_type.create(bind, checkfirst=True)
        return enum_type
    return sa.Enum(*values, name=name)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    frequency = _enum(bind, "compliancefrequency")
    schedule_status = _enum(bind, "complianceschedulestatus")
    recurrence = _enum(bind, "recurrencetype")
    pm_status = _enum(bind, "pmschedulestatus")
    work_order_status = _enum(bind, "workorderstatus")

    if "compliance_requirements" not in existing_tables:
        op.create_table(
            "compliance_requirements",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("category", sa.String(length=50), nullable=False),
            sa.Column("frequency", frequency, nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.Column("property_ids", sa.JSON(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_compliance_requirements_category", "compliance_requirements", ["category"], unique=False
        )

    if "compliance_schedules" not in existing_tables:
        op.create_table(
            "compliance_schedules",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("deleted_at", sa.DateTime(), nullable=True),
            sa.Column("schedule_number", sa.String(length=20), nullable=False),
            sa.Column("property_id", sa.Integer(), nullable=False),
            sa.Column("requirement_id", sa.Integer(), nullable=False),
            sa.Column("due_date", sa.Date(), nullable=False),
            sa.Column("status", schedule_status, nullable=False),
            sa.Column("completion_date", sa.Date(), nullable=True),
            sa.Column("certificate_number", sa.String(length=100), nullable=True),
            sa.Column("notes", sa.String(length=1000), nullable=True),
            sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
            sa.ForeignKeyConstraint(["requirement_id"], ["compliance_requirements.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        for name, columns, unique in (
            ("ix_compliance_schedules_schedule_number", ["schedule_number"], True),
            ("ix_compliance_schedules_property_id", ["property_id"], False),
            ("ix_compliance_schedules_requirement_id", ["requirement_id"], False),
            ("ix_compliance_schedules_due_date", ["due_date"], False),
            ("ix_compliance_schedules_status", ["status"], False),
            ("ix_compliance_schedules_deleted_at", ["deleted_at"], False),
        ):
            op.create_index(name, "compliance_schedules", columns, unique=unique)

    if "pm_schedules" not in existing_tables:
        op.create_table(
            "pm_schedules",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("deleted_at", sa.DateTime(), nullable=True),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("property_id", sa.Integer(), nullable=True),
            sa.Column("category", sa.String(length=50), nullable=False),
            sa.Column("description", sa.String(length=1000), nullable=False),
            sa.Column("recurrence", recurrence, nullable=False),
            sa.Column("start_date", sa.Date(), nullable=False),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column("next_generation_date", sa.Date(), nullable=True),
            sa.Column("last_generated_date", sa.Date(), nullable=True),
            sa.Column("status", pm_status, nullable=False),
            sa.Column("default_assignee_id", sa.Integer(), nullable=True),
            sa.Column("created_by", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
            sa.ForeignKeyConstraint(["default_assignee_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_pm_schedules_property_id", "pm_schedules", ["property_id"], unique=False)
        op.create_index(
            "ix_pm_schedules_next_generation_date", "pm_schedules", ["next_generation_date"], unique=False
        )
        op.create_index("ix_pm_schedules_status", "pm_schedules", ["status"], unique=False)
        op.create_index("ix_pm_schedules_deleted_at", "pm_schedules", ["deleted_at"], unique=False)

    if "work_orders" not in existing_tables:
        op.create_table(
            "work_orders",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("work_order_number", sa.String(length=20), nullable=False),
            sa.Column("property_id", sa.Integer(), nullable=True),
            sa.Column("pm_schedule_id", sa.Integer(), nullable=True),
            sa.Column("generated_for", sa.Date(), nullable=True),
            sa.Column("title", sa.String(length=100), nullable=False),
            sa.Column("description", sa.String(length=1000), nullable=False),
            sa.Column("category", sa.String(length=50), nullable=False),
            sa.Column("status", work_order_status, nullable=False),
            sa.Column("requested_by", sa.Integer(), nullable=True),
            sa.Column("assigned_to", sa.Integer(), nullable=True),
            sa.Column("assigned_at", sa.DateTime(), nullable=True),
            sa.Column("scheduled_date", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
            sa.ForeignKeyConstraint(["pm_schedule_id"], ["pm_schedules.id"]),
            sa.ForeignKeyConstraint(["requested_by"], ["users.id"]),
            sa.ForeignKeyConstraint(["assigned_to"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "pm_schedule_id",
                "property_id",
                "generated_for",
                name="uq_work_orders_pm_schedule_id_property_id_generated_for",
            ),
        )
        op.create_index(
            "ix_work_orders_work_order_number", "work_orders", ["work_order_number"], unique=True
        )
        op.create_index("ix_work_orders_property_id", "work_orders", ["property_id"], unique=False)
        op.create_index("ix_work_orders_pm_schedule_id", "work_orders", ["pm_schedule_id"], unique=False)
        op.create_index("ix_work_orders_status", "work_orders", ["status"], unique=False)


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
