from __future__ import annotations

from datetime import date
from enum import Enum

from sqlalchemy import JSON, Column
from sqlmodel import Field

from estatedesk.models.base import BaseTable, SoftDeletableTable


class ComplianceFrequency(str, Enum):
    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUALLY = "SEMI_ANNUALLY"
    ANNUALLY = "ANNUALLY"
    BIANNUALLY = "BIANNUALLY"


FREQUENCY_MONTHS: dict[ComplianceFrequency, int] = {
    ComplianceFrequency.ONE_TIME: 0,
    ComplianceFrequency.MONTHLY: 1,
    ComplianceFrequency.QUARTERLY: 3,
    ComplianceFrequency.SEMI_ANNUALLY: 6,
    ComplianceFrequency.ANNUALLY: 12,
    ComplianceFrequency.BIANNUALLY: 24,
}


class ComplianceScheduleStatus(str, Enum):
    UPCOMING = "UPCOMING"
    DUE = "DUE"
    OVERDUE = "OVERDUE"
    COMPLETED = "COMPLETED"
    EXEMPT = "EXEMPT"


class ComplianceRequirement(BaseTable, table=True):
    __tablename__: str = "compliance_requirements"  # type: ignore[assignment]

    name: str = Field(nullable=False, max_length=200)
    category: str = Field(nullable=False, index=True, max_length=50)
    frequency: ComplianceFrequency = Field(nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    # None means the requirement applies to every property
    property_ids: list[int] | None = Field(default=None, sa_column=Column(JSON, nullable=True))

    def applies_to(self, property_id: int) -> bool:
        if self.property_ids is None:
            return True
        return property_id in self.property_ids


class ComplianceSchedule(SoftDeletableTable, table=True):
    __tablename__: str = "compliance_schedules"  # type: ignore[assignment]

    schedule_number: str = Field(nullable=False, unique=True, index=True, max_length=20)
    property_id: int = Field(nullable=False, foreign_key="properties.id", index=True)
    requirement_id: int = Field(nullable=False, foreign_key="compliance_requirements.id", index=True)
    due_date: date = Field(nullable=False, index=True)
    status: ComplianceScheduleStatus = Field(
        default=ComplianceScheduleStatus.UPCOMING, nullable=False, index=True
    )
    completion_date: date | None = Field(default=None)
    certificate_number: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=1000)
