"""create auth sessions table

Revision ID: 8ed37e2dc3d2
Revises: 228009274123
Create Date: 2026-02-16 17:04:16.446452

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '8ed37e2dc3d2'
down_revision: Union[str, Sequence[str], None] = '228009274123'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REVOCATION_REASONS = (
    "logout",
    "logout_all",
    "idle_timeout",
    "absolute_timeout",
    "session_limit",
    "password_reset",
    "rotated",
)

INDEXES = (
    ("ix_auth_sessions_session_id", ["session_id"], True),
    ("ix_auth_sessions_user_id", ["user_id"], False),
    ("ix_auth_sessions_access_token_hash", ["access_token_hash"], True),
    ("ix_auth_sessions_refresh_token_hash", ["refresh_token_hash"], True),
    ("ix_auth_sessions_refresh_expires_at", ["refresh_expires_at"], False),
    ("ix_auth_sessions_expires_at", ["expires_at"], False),
    ("ix_auth_sessions_is_active", ["is_active"], False),
    ("ix_auth_sessions_revoked_at", ["revoked_at"], False),
)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if "auth_sessions" in inspector.get_table_names():
        return

    if bind.dialect.name == "postgresql":
        reason_enum = postgresql.ENUM(*REVOCATION_REASONS, name="revocationreason", create_type=False)
        reason_enum.create(bind, checkfirst=True)
    else:
        reason_enum = sa.Enum(*REVOCATION_REASONS, name="revocationreason")

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("session_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("access_token_hash", sa.String(length=64), nullable=False),
        sa.Column("refresh_token_hash", sa.String(length=64), nullable=False),
        sa.Column("access_expires_at", sa.DateTime(), nullable=False),
        sa.Column("refresh_expires_at", sa.DateTime(), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("revoke_reason", reason_enum, nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("device_type", sa.String(length=20), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    for name, columns, unique in INDEXES:
        op.create_index(name, "auth_sessions", columns, unique=unique)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if "auth_sessions" not in inspector.get_table_names():
        return

    index_names = {idx["name"] for idx in inspector.get_indexes("auth_sessions")}
    for name, _, _ in reversed(INDEXES):
        if name in index_names:
            op.drop_index(name, table_name="auth_sessions")
    op.drop_table("auth_sessions")

    if bind.dialect.name == "postgresql":
        postgresql.ENUM(name="revocationreason").drop(bind, checkfirst=True)
