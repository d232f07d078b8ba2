from datetime import datetime

from sqlmodel import Field

from estatedesk.models.base import BaseTable


class PasswordResetToken(BaseTable, table=True):
    __tablename__: str = "password_reset_tokens"  # type: ignore[assignment]

    user_id: int = Field(nullable=False, foreign_key="users.id", index=True)
    token_hash: str = Field(nullable=False, unique=True, index=True, max_length=64)
    expires_at: datetime = Field(nullable=False, index=True)
    used_at: datetime | None = Field(default=None)
