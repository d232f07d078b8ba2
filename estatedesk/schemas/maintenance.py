from datetime import date, datetime

from pydantic import Field

from estatedesk.models.maintenance import PMScheduleStatus, RecurrenceType, WorkOrderStatus
from estatedesk.schemas.camel_model import CamelModel


class PMScheduleCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    property_id: int | None = None
    category: str = Field(min_length=1, max_length=50)
    description: str = Field(default="", max_length=1000)
    recurrence: RecurrenceType
    start_date: date
    end_date: date | None = None
    default_assignee_id: int | None = None


class PMScheduleStatusUpdate(CamelModel):
    status: PMScheduleStatus


class PMScheduleRead(CamelModel):
    id: int
    name: str
    property_id: int | None = None
    category: str
    description: str
    recurrence: RecurrenceType
    start_date: date
    end_date: date | None = None
    next_generation_date: date | None = None
    last_generated_date: date | None = None
    status: PMScheduleStatus
    default_assignee_id: int | None = None
    created_at: datetime
    updated_at: datetime


class WorkOrderRead(CamelModel):
    id: int
    work_order_number: str
    property_id: int | None = None
    pm_schedule_id: int | None = None
    generated_for: date | None = None
    title: str
    description: str
    category: str
    status: WorkOrderStatus
    assigned_to: int | None = None
    scheduled_date: datetime | None = None
    created_at: datetime
