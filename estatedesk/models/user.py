from datetime import datetime
from enum import Enum

from sqlmodel import Field

from estatedesk.models.base import BaseTable


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    FINANCE_MANAGER = "FINANCE_MANAGER"
    MAINTENANCE_SUPERVISOR = "MAINTENANCE_SUPERVISOR"
    TENANT = "TENANT"
    VENDOR = "VENDOR"


class User(BaseTable, table=True):
    __tablename__: str = "users" # type: ignore[assignment]

    email: str = Field(index=True, unique=True, nullable=False, max_length=255)
    full_name: str = Field(nullable=False, max_length=255)
    password_hash: str = Field(nullable=False, max_length=255)
    role: Role = Field(default=Role.TENANT, nullable=False)
    is_active: bool = Field(default=True, nullable=False)

    account_locked: bool = Field(default=False, nullable=False)
    locked_until: datetime | None = Field(default=None)
    failed_login_attempts: int = Field(default=0, nullable=False)

    last_login_at: datetime | None = Field(default=None)
    password_changed_at: datetime | None = Field(default=None)

    # A lock without an expiry is an indefinite (administrative) lock.
    def is_locked_at(self, now: datetime) -> bool:
        return bool(self.account_locked and (self.locked_until is None or self.locked_until > now))

    def lock_expired_at(self, now: datetime) -> bool:
        return bool(self.account_locked and self.locked_until is not None and self.locked_until <= now)

    def clear_lockout(self) -> None:
        self.account_locked = False
        self.locked_until = None
        self.failed_login_attempts = 0
