from datetime import datetime
from enum import Enum

from sqlmodel import Field

from estatedesk.models.base import BaseTable


class RevocationReason(str, Enum):
    logout = "logout"
    logout_all = "logout_all"
    idle_timeout = "idle_timeout"
    absolute_timeout = "absolute_timeout"
    session_limit = "session_limit"
    password_reset = "password_reset"
    rotated = "rotated"


class AuthSession(BaseTable, table=True):
    __tablename__: str = "auth_sessions"  # type: ignore[assignment]

    session_id: str = Field(nullable=False, unique=True, index=True, max_length=36)
    user_id: int = Field(nullable=False, foreign_key="users.id", index=True)

    access_token_hash: str = Field(nullable=False, unique=True, index=True, max_length=64)
    refresh_token_hash: str = Field(nullable=False, unique=True, index=True, max_length=64)
    access_expires_at: datetime = Field(nullable=False)
    refresh_expires_at: datetime = Field(nullable=False, index=True)

    last_activity_at: datetime = Field(nullable=False)
    expires_at: datetime = Field(nullable=False, index=True)
    is_active: bool = Field(default=True, nullable=False, index=True)
    revoked_at: datetime | None = Field(default=None, index=True)
    revoke_reason: RevocationReason | None = Field(default=None)

    ip_address: str | None = Field(default=None, max_length=64)
    user_agent: str | None = Field(default=None, max_length=255)
    device_type: str | None = Field(default=None, max_length=20)
