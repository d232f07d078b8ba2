"""create revoked tokens, attempt counters and password reset tables

Revision ID: 3b1f0c7d2a91
Revises: 8ed37e2dc3d2
Create Date: 2026-03-02 10:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3b1f0c7d2a91"
down_revision: Union[str, Sequence[str], None] = "8ed37e2dc3d2"
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


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if bind.dialect.name == "postgresql":
        token_type_enum = postgresql.ENUM("access", "refresh", name="tokentype", create_type=False)
        token_type_enum.create(bind, checkfirst=True)
        reason_enum = postgresql.ENUM(*REVOCATION_REASONS, name="revocationreason", create_type=False)
    else:
        token_type_enum = sa.Enum("access", "refresh", name="tokentype")
        reason_enum = sa.Enum(*REVOCATION_REASONS, name="revocationreason")

    if "revoked_tokens" not in existing_tables:
        op.create_table(
            "revoked_tokens",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("token_type", token_type_enum, nullable=False),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("reason", reason_enum, nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_revoked_tokens_token_hash", "revoked_tokens", ["token_hash"], unique=True)
        op.create_index("ix_revoked_tokens_expires_at", "revoked_tokens", ["expires_at"], unique=False)

    if "attempt_counters" not in existing_tables:
        op.create_table(
            "attempt_counters",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("scope", sa.String(length=32), nullable=False),
            sa.Column("key", sa.String(length=255), nullable=False),
            sa.Column("attempt_count", sa.Integer(), nullable=False),
            sa.Column("window_start", sa.DateTime(), nullable=False),
            sa.Column("last_attempt_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("scope", "key", name="uq_attempt_counters_scope_key"),
        )
        op.create_index("ix_attempt_counters_key", "attempt_counters", ["key"], unique=False)
        op.create_index("ix_attempt_counters_window_start", "attempt_counters", ["window_start"], unique=False)

    if "password_reset_tokens" not in existing_tables:
        op.create_table(
            "password_reset_tokens",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("used_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_password_reset_tokens_user_id", "password_reset_tokens", ["user_id"], unique=False)
        op.create_index(
            "ix_password_reset_tokens_token_hash", "password_reset_tokens", ["token_hash"], unique=True
        )
        op.create_index(
            "ix_password_reset_tokens_expires_at", "password_reset_tokens", ["expires_at"], unique=False
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    for table in ("password_reset_tokens", "attempt_counters", "revoked_tokens"):
        if table not in existing_tables:
            continue
        for idx in inspector.get_indexes(table):
            if idx["name"] and idx["name"].startswith("ix_"):
                op.drop_index(idx["name"], table_name=table)
        op.drop_table(table)

    if bind.dialect.name == "postgresql":
        postgresql.ENUM(name="tokentype").drop(bind, checkfirst=True)
