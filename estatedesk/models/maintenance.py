from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from estatedesk.models.base import BaseTable, SoftDeletableTable


class RecurrenceType(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUALLY = "SEMI_ANNUALLY"
    ANNUALLY = "ANNUALLY"


RECURRENCE_MONTHS: dict[RecurrenceType, int] = {
    RecurrenceType.MONTHLY: 1,
    RecurrenceType.QUARTERLY: 3,
    RecurrenceType.SEMI_ANNUALLY: 6,
    RecurrenceType.ANNUALLY: 12,
}


class PMScheduleStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


PM_STATUS_TRANSITIONS: dict[PMScheduleStatus, tuple[PMScheduleStatus, ...]] = {
    PMScheduleStatus.ACTIVE: (PMScheduleStatus.PAUSED, PMScheduleStatus.COMPLETED),
    PMScheduleStatus.PAUSED: (PMScheduleStatus.ACTIVE, PMScheduleStatus.COMPLETED),
    PMScheduleStatus.COMPLETED: (),
}


class WorkOrderStatus(str, Enum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PMSchedule(SoftDeletableTable, table=True):
    __tablename__: str = "pm_schedules"  # type: ignore[assignment]

    name: str = Field(nullable=False, max_length=100)
    # None means the schedule covers every active property
    property_id: int | None = Field(default=None, foreign_key="properties.id", index=True)
    category: str = Field(nullable=False, max_length=50)
    description: str = Field(default="", max_length=1000)
    recurrence: RecurrenceType = Field(nullable=False)
    start_date: date = Field(nullable=False)
    end_date: date | None = Field(default=None)
    next_generation_date: date | None = Field(default=None, index=True)
    last_generated_date: date | None = Field(default=None)
    status: PMScheduleStatus = Field(default=PMScheduleStatus.ACTIVE, nullable=False, index=True)
    default_assignee_id: int | None = Field(default=None, foreign_key="users.id")
    created_by: int | None = Field(default=None, foreign_key="users.id")


class WorkOrder(BaseTable, table=True):
    __tablename__: str = "work_orders"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint(
            "pm_schedule_id",
            "property_id",
            "generated_for",
            name="uq_work_orders_pm_schedule_id_property_id_generated_for",
        ),
    )

    work_order_number: str = Field(nullable=False, unique=True, index=True, max_length=20)
    property_id: int | None = Field(default=None, foreign_key="properties.id", index=True)
    pm_schedule_id: int | None = Field(default=None, foreign_key="pm_schedules.id", index=True)
    generated_for: date | None = Field(default=None)
    title: str = Field(nullable=False, max_length=100)
    description: str = Field(default="", max_length=1000)
    category: str = Field(nullable=False, max_length=50)
    status: WorkOrderStatus = Field(default=WorkOrderStatus.OPEN, nullable=False, index=True)
    requested_by: int | None = Field(default=None, foreign_key="users.id")
    assigned_to: int | None = Field(default=None, foreign_key="users.id")
    assigned_at: datetime | None = Field(default=None)
    scheduled_date: datetime | None = Field(default=None)
