from datetime import datetime
from enum import Enum

from sqlmodel import Field

from estatedesk.models.auth_session import RevocationReason
from estatedesk.models.base import BaseTable


class TokenType(str, Enum):
    access = "access"
    refresh = "refresh"


class RevokedToken(BaseTable, table=True):
    __tablename__: str = "revoked_tokens"  # type: ignore[assignment]

    token_hash: str = Field(nullable=False, unique=True, index=True, max_length=64)
    token_type: TokenType = Field(nullable=False)
    expires_at: datetime = Field(nullable=False, index=True)
    reason: RevocationReason = Field(nullable=False)
