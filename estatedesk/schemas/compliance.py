from datetime import date, datetime

from pydantic import Field

from estatedesk.models.compliance import ComplianceFrequency, ComplianceScheduleStatus
from estatedesk.schemas.camel_model import CamelModel


class RequirementCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    category: str = Field(min_length=1, max_length=50)
    frequency: ComplianceFrequency
    property_ids: list[int] | None = None
    is_active: bool = True


class RequirementRead(CamelModel):
    id: int
    name: str
    category: str
    frequency: ComplianceFrequency
    property_ids: list[int] | None = None
    is_active: bool
    created_at: datetime


class ScheduleRead(CamelModel):
    id: int
    schedule_number: str
    property_id: int
    requirement_id: int
    due_date: date
    status: ComplianceScheduleStatus
    completion_date: date | None = None
    certificate_number: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class ScheduleComplete(CamelModel):
    completion_date: date | None = None
    certificate_number: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=1000)


class ScheduleExempt(CamelModel):
    reason: str = Field(min_length=1, max_length=1000)
