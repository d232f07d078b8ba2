"""create users table

Revision ID: 228009274123
Revises:
Create Date: 2026-02-16 16:15:11.276901

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '228009274123'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLES = (
    "SUPER_ADMIN",
    "PROPERTY_MANAGER",
    "FINANCE_MANAGER",
    "MAINTENANCE_SUPERVISOR",
    "TENANT",
    "VENDOR",
)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if "users" in inspector.get_table_names():
        return

    if bind.dialect.name == "postgresql":
        role_enum = postgresql.ENUM(*ROLES, name="role", create_type=False)
        role_enum.create(bind, checkfirst=True)
    else:
        role_enum = sa.Enum(*ROLES, name="role")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("account_locked", sa.Boolean(), nullable=False),
        sa.Column("locked_until", sa.DateTime(), nullable=True),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("password_changed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if "users" in inspector.get_table_names():
        index_names = {idx["name"] for idx in inspector.get_indexes("users")}
        if "ix_users_email" in index_names:
            op.drop_index("ix_users_email", table_name="users")
        op.drop_table("users")

    if bind.dialect.name == "postgresql":
        postgresql.ENUM(name="role").drop(bind, checkfirst=True)
