from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

from sqlmodel import Field, SQLModel, col


def utcnow() -> datetime:
    # Stored timestamps are naive UTC across every table.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseTable(SQLModel):
    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def touch_updated(self, now: datetime | None = None) -> None:
        self.updated_at = now or utcnow()


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Deleted:
    at: datetime


Lifecycle = Union[Active, Deleted]


class SoftDeletableTable(BaseTable):
    deleted_at: datetime | None = Field(default=None, index=True)

    @property
    def lifecycle(self) -> Lifecycle:
        if self.deleted_at is None:
            return Active()
        return Deleted(at=self.deleted_at)

    @property
    def is_deleted(self) -> bool:
        return isinstance(self.lifecycle, Deleted)

    def mark_deleted(self, now: datetime | None = None) -> None:
        if self.deleted_at is None:
            self.deleted_at = now or utcnow()

    @classmethod
    def not_deleted(cls):
        return col(cls.deleted_at).is_(None)
