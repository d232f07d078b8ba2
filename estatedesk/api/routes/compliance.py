from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from estatedesk.api.deps import SessionDep, require_permission
from estatedesk.models.compliance import ComplianceRequirement, ComplianceSchedule
from estatedesk.models.user import User
from estatedesk.schemas.compliance import (
    RequirementCreate,
    RequirementRead,
    ScheduleComplete,
    ScheduleExempt,
    ScheduleRead,
)
from estatedesk.services import compliance as compliance_service

router = APIRouter(prefix="/compliance", tags=["compliance"])

ReaderDep = Annotated[User, Depends(require_permission("compliance:read"))]
WriterDep = Annotated[User, Depends(require_permission("compliance:write"))]


@router.post("/requirements", response_model=RequirementRead, status_code=status.HTTP_201_CREATED)
def create_requirement(payload: RequirementCreate, session: SessionDep, current_user: WriterDep) -> ComplianceRequirement:
    return compliance_service.create_requirement(
        session,
        name=payload.name,
        category=payload.category,
        frequency=payload.frequency,
        property_ids=payload.property_ids,
        is_active=payload.is_active,
    )


@router.post(
    "/properties/{property_id}/generate",
    response_model=list[ScheduleRead],
    status_code=status.HTTP_201_CREATED,
)
def generate_for_property(property_id: int, session: SessionDep, current_user: WriterDep) -> list[ComplianceSchedule]:
    return compliance_service.generate_for_property(session, property_id)


@router.get("/schedules/{schedule_id}", response_model=ScheduleRead)
def get_schedule(schedule_id: int, session: SessionDep, current_user: ReaderDep) -> ComplianceSchedule:
    return compliance_service.get_schedule(session, schedule_id)


@router.post("/schedules/{schedule_id}/complete", response_model=ScheduleRead)
def complete_schedule(
    schedule_id: int,
    payload: ScheduleComplete,
    session: SessionDep,
    current_user: WriterDep,
) -> ComplianceSchedule:
    return compliance_service.complete_schedule(
        session,
        schedule_id,
        completion_date=payload.completion_date,
        certificate_number=payload.certificate_number,
        notes=payload.notes,
    )


@router.post("/schedules/{schedule_id}/exempt", response_model=ScheduleRead)
def exempt_schedule(
    schedule_id: int,
    payload: ScheduleExempt,
    session: SessionDep,
    current_user: WriterDep,
) -> ComplianceSchedule:
    return compliance_service.exempt_schedule(session, schedule_id, reason=payload.reason)


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(schedule_id: int, session: SessionDep, current_user: WriterDep) -> None:
    compliance_service.delete_schedule(session, schedule_id)
