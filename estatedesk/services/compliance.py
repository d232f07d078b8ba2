from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from sqlmodel import Session, col, select

from estatedesk.core.config import settings
from estatedesk.core.errors import NotFound, ValidationFailed
from estatedesk.models.base import utcnow
from estatedesk.models.compliance import (
    FREQUENCY_MONTHS,
    ComplianceFrequency,
    ComplianceRequirement,
    ComplianceSchedule,
    ComplianceScheduleStatus,
)
from estatedesk.services.dates import add_months
from estatedesk.services.numbering import next_number
from estatedesk.services.properties import get_property

logger = logging.getLogger(__name__)


def next_due_date(from_date: date, frequency: ComplianceFrequency) -> date:
    return add_months(from_date, FREQUENCY_MONTHS[frequency])


def create_requirement(
    session: Session,
    *,
    name: str,
    category: str,
    frequency: ComplianceFrequency,
    property_ids: list[int] | None = None,
    is_active: bool = True,
) -> ComplianceRequirement:
    if not name.strip():
        raise ValidationFailed("Requirement name is required", errors={"name": ["Required"]})
    requirement = ComplianceRequirement(
        name=name.strip(),
        category=category.strip().upper(),
        frequency=frequency,
        property_ids=sorted(set(property_ids)) if property_ids is not None else None,
        is_active=is_active,
    )
    session.add(requirement)
    session.commit()
    session.refresh(requirement)
    return requirement


def get_schedule(session: Session, schedule_id: int) -> ComplianceSchedule:
    schedule = session.get(ComplianceSchedule, schedule_id)
    if schedule is None or schedule.is_deleted:
        raise NotFound("Compliance schedule", schedule_id)
    return schedule


def _create_schedule(
    session: Session,
    *,
    property_id: int,
    requirement_id: int,
    due_date: date,
    now: datetime,
) -> ComplianceSchedule:
    schedule = ComplianceSchedule(
        schedule_number=next_number(session, ComplianceSchedule.schedule_number, "CMP", now.year),
        property_id=property_id,
        requirement_id=requirement_id,
        due_date=due_date,
        status=ComplianceScheduleStatus.UPCOMING,
    )
    session.add(schedule)
    session.flush()
    return schedule


def generate_for_property(
    session: Session,
    property_id: int,
    *,
    now: datetime | None = None,
) -> list[ComplianceSchedule]:
    """Create one upcoming schedule per applicable requirement that has none still open."""
    now = now or utcnow()
    get_property(session, property_id)

    requirements = session.exec(
        select(ComplianceRequirement).where(col(ComplianceRequirement.is_active).is_(True))
    ).all()

    created = []
    for requirement in requirements:
        if not requirement.applies_to(property_id):
            continue
        existing = session.exec(
            select(ComplianceSchedule).where(
                ComplianceSchedule.property_id == property_id,
                ComplianceSchedule.requirement_id == requirement.id,
                ComplianceSchedule.status != ComplianceScheduleStatus.COMPLETED,
                ComplianceSchedule.not_deleted(),
            )
        ).first()
        if existing is not None:
            continue
        created.append(
            _create_schedule(
                session,
                property_id=property_id,
                requirement_id=requirement.id,
                due_date=now.date() + timedelta(days=settings.COMPLIANCE_INITIAL_DUE_DAYS),
                now=now,
            )
        )

    session.commit()
    for schedule in created:
        session.refresh(schedule)
    logger.info("compliance_schedules_generated: property %s", property_id, extra={"affected": len(created)})
    return created


def _generate_next(session: Session, completed: ComplianceSchedule, now: datetime) -> ComplianceSchedule | None:
    requirement = session.get(ComplianceRequirement, completed.requirement_id)
    if requirement is None or requirement.frequency == ComplianceFrequency.ONE_TIME:
        return None

    base = completed.completion_date or completed.due_date
    due = next_due_date(base, requirement.frequency)
    existing = session.exec(
        select(ComplianceSchedule).where(
            ComplianceSchedule.property_id == completed.property_id,
            ComplianceSchedule.requirement_id == requirement.id,
            ComplianceSchedule.due_date == due,
            ComplianceSchedule.not_deleted(),
        )
    ).first()
    if existing is not None:
        return None
    return _create_schedule(
        session,
        property_id=completed.property_id,
        requirement_id=requirement.id,
        due_date=due,
        now=now,
    )


def complete_schedule(
    session: Session,
    schedule_id: int,
    *,
    completion_date: date | None = None,
    certificate_number: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> ComplianceSchedule:
    now = now or utcnow()
    schedule = get_schedule(session, schedule_id)
    if schedule.status == ComplianceScheduleStatus.COMPLETED:
        raise ValidationFailed("Schedule is already completed")
    if schedule.status == ComplianceScheduleStatus.EXEMPT:
        raise ValidationFailed("Exempt schedule cannot be completed")

    schedule.status = ComplianceScheduleStatus.COMPLETED
    schedule.completion_date = completion_date or now.date()
    schedule.certificate_number = certificate_number
    if notes is not None:
        schedule.notes = notes
    schedule.touch_updated(now)
    session.add(schedule)

    follow_up = _generate_next(session, schedule, now)
    session.commit()
    session.refresh(schedule)
    if follow_up is not None:
        logger.info("compliance_schedule_rolled_over: %s", follow_up.schedule_number)
    return schedule


def exempt_schedule(
    session: Session,
    schedule_id: int,
    *,
    reason: str,
    now: datetime | None = None,
) -> ComplianceSchedule:
    now = now or utcnow()
    schedule = get_schedule(session, schedule_id)
    if schedule.status == ComplianceScheduleStatus.COMPLETED:
        raise ValidationFailed("Completed schedule cannot be exempted")
    schedule.status = ComplianceScheduleStatus.EXEMPT
    schedule.notes = reason
    schedule.touch_updated(now)
    session.add(schedule)
    session.commit()
    session.refresh(schedule)
    return schedule


def delete_schedule(session: Session, schedule_id: int, *, now: datetime | None = None) -> None:
    now = now or utcnow()
    schedule = get_schedule(session, schedule_id)
    schedule.mark_deleted(now)
    schedule.touch_updated(now)
    session.add(schedule)
    session.commit()


def update_schedule_statuses(session: Session, *, now: datetime | None = None) -> int:
    now = now or utcnow()
    today = now.date()
    due_soon = today + timedelta(days=settings.COMPLIANCE_DUE_SOON_DAYS)
    changed = 0

    overdue = session.exec(
        select(ComplianceSchedule).where(
            col(ComplianceSchedule.status).in_(
                (ComplianceScheduleStatus.UPCOMING, ComplianceScheduleStatus.DUE)
            ),
            col(ComplianceSchedule.due_date) < today,
            ComplianceSchedule.not_deleted(),
        )
    ).all()
    for schedule in overdue:
        schedule.status = ComplianceScheduleStatus.OVERDUE
        schedule.touch_updated(now)
        session.add(schedule)
        changed += 1

    becoming_due = session.exec(
        select(ComplianceSchedule).where(
            ComplianceSchedule.status == ComplianceScheduleStatus.UPCOMING,
            col(ComplianceSchedule.due_date) >= today,
            col(ComplianceSchedule.due_date) <= due_soon,
            ComplianceSchedule.not_deleted(),
        )
    ).all()
    for schedule in becoming_due:
        schedule.status = ComplianceScheduleStatus.DUE
        schedule.touch_updated(now)
        session.add(schedule)
        changed += 1

    session.commit()
    return changed
