from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from estatedesk.models.base import BaseTable


class AttemptCounter(BaseTable, table=True):
    __tablename__: str = "attempt_counters"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("scope", "key", name="uq_attempt_counters_scope_key"),
    )

    scope: str = Field(nullable=False, max_length=32)
    key: str = Field(nullable=False, index=True, max_length=255)
    attempt_count: int = Field(default=0, nullable=False)
    window_start: datetime = Field(nullable=False, index=True)
    last_attempt_at: datetime | None = Field(default=None)
