from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from estatedesk.api.deps import SessionDep, require_permission
from estatedesk.models.maintenance import PMSchedule, WorkOrder
from estatedesk.models.user import User
from estatedesk.schemas.maintenance import PMScheduleCreate, PMScheduleRead, PMScheduleStatusUpdate, WorkOrderRead
from estatedesk.services import pm_schedules as pm_service

router = APIRouter(prefix="/pm-schedules", tags=["pm-schedules"])

ReaderDep = Annotated[User, Depends(require_permission("pm:read"))]
WriterDep = Annotated[User, Depends(require_permission("pm:write"))]


@router.post("", response_model=PMScheduleRead, status_code=status.HTTP_201_CREATED)
def create_schedule(payload: PMScheduleCreate, session: SessionDep, current_user: WriterDep) -> PMSchedule:
    return pm_service.create_schedule(
        session,
        name=payload.name,
        property_id=payload.property_id,
        category=payload.category,
        description=payload.description,
        recurrence=payload.recurrence,
        start_date=payload.start_date,
        end_date=payload.end_date,
        default_assignee_id=payload.default_assignee_id,
        created_by=current_user.id,
    )


@router.get("/{schedule_id}", response_model=PMScheduleRead)
def get_schedule(schedule_id: int, session: SessionDep, current_user: ReaderDep) -> PMSchedule:
    return pm_service.get_schedule(session, schedule_id)


@router.patch("/{schedule_id}/status", response_model=PMScheduleRead)
def update_status(
    schedule_id: int,
    payload: PMScheduleStatusUpdate,
    session: SessionDep,
    current_user: WriterDep,
) -> PMSchedule:
    return pm_service.update_status(session, schedule_id, payload.status)


@router.post("/{schedule_id}/generate", response_model=WorkOrderRead, status_code=status.HTTP_201_CREATED)
def generate_now(schedule_id: int, session: SessionDep, current_user: WriterDep) -> WorkOrder:
    return pm_service.generate_now(session, schedule_id, requested_by=current_user.id)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(schedule_id: int, session: SessionDep, current_user: WriterDep) -> None:
    pm_service.delete_schedule(session, schedule_id)
