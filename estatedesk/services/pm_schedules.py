from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from sqlmodel import Session, col, select

from estatedesk.core.config import settings
from estatedesk.core.errors import NotFound, ValidationFailed
from estatedesk.models.base import utcnow
from estatedesk.models.maintenance import (
    PM_STATUS_TRANSITIONS,
    RECURRENCE_MONTHS,
    PMSchedule,
    PMScheduleStatus,
    RecurrenceType,
    WorkOrder,
    WorkOrderStatus,
)
from estatedesk.models.property import Property
from estatedesk.models.user import User
from estatedesk.services.dates import add_months
from estatedesk.services.numbering import next_number

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100


def get_schedule(session: Session, schedule_id: int) -> PMSchedule:
    schedule = session.get(PMSchedule, schedule_id)
    if schedule is None or schedule.is_deleted:
        raise NotFound("PM schedule", schedule_id)
    return schedule


def next_generation_date(schedule: PMSchedule) -> date | None:
    """Following generation date, or None once the schedule runs past its end date."""
    current = schedule.next_generation_date or schedule.start_date
    following = add_months(current, RECURRENCE_MONTHS[schedule.recurrence])
    if schedule.end_date is not None and following > schedule.end_date:
        return None
    return following


def create_schedule(
    session: Session,
    *,
    name: str,
    category: str,
    recurrence: RecurrenceType,
    start_date: date,
    property_id: int | None = None,
    description: str = "",
    end_date: date | None = None,
    default_assignee_id: int | None = None,
    created_by: int | None = None,
) -> PMSchedule:
    if property_id is not None:
        prop = session.get(Property, property_id)
        if prop is None or prop.is_deleted:
            raise NotFound("Property", property_id)
    if default_assignee_id is not None and session.get(User, default_assignee_id) is None:
        raise NotFound("User", default_assignee_id)
    if end_date is not None and end_date <= start_date:
        raise ValidationFailed(
            "End date must be after start date",
            errors={"endDate": ["Must be after start date"]},
        )

    schedule = PMSchedule(
        name=name.strip(),
        property_id=property_id,
        category=category.strip().upper(),
        description=description,
        recurrence=recurrence,
        start_date=start_date,
        end_date=end_date,
        next_generation_date=start_date,
        status=PMScheduleStatus.ACTIVE,
        default_assignee_id=default_assignee_id,
        created_by=created_by,
    )
    session.add(schedule)
    session.commit()
    session.refresh(schedule)
    logger.info("pm_schedule_created: %s", schedule.id)
    return schedule


def update_status(
    session: Session,
    schedule_id: int,
    new_status: PMScheduleStatus,
    *,
    now: datetime | None = None,
) -> PMSchedule:
    now = now or utcnow()
    schedule = get_schedule(session, schedule_id)
    if new_status not in PM_STATUS_TRANSITIONS[schedule.status]:
        raise ValidationFailed(
            f"Invalid status transition: {schedule.status.value} -> {new_status.value}",
            errors={"status": [f"Current status is {schedule.status.value}"]},
        )
    schedule.status = new_status
    if new_status == PMScheduleStatus.COMPLETED:
        schedule.next_generation_date = None
    schedule.touch_updated(now)
    session.add(schedule)
    session.commit()
    session.refresh(schedule)
    return schedule


def delete_schedule(session: Session, schedule_id: int, *, now: datetime | None = None) -> None:
    now = now or utcnow()
    schedule = get_schedule(session, schedule_id)
    has_work_orders = session.exec(
        select(WorkOrder.id).where(WorkOrder.pm_schedule_id == schedule.id).limit(1)
    ).first()
    if has_work_orders is not None:
        raise ValidationFailed("Cannot delete PM schedule that has generated work orders")
    schedule.mark_deleted(now)
    schedule.touch_updated(now)
    session.add(schedule)
    session.commit()


def _title(schedule: PMSchedule, property_name: str | None) -> str:
    title = schedule.name
    if property_name:
        title = f"{title} - {property_name}"
    if len(title) > TITLE_MAX_LENGTH:
        title = title[: TITLE_MAX_LENGTH - 3] + "..."
    return title


def _build_work_order(
    session: Session,
    schedule: PMSchedule,
    *,
    property_id: int | None,
    generated_for: date | None,
    requested_by: int | None,
    now: datetime,
) -> WorkOrder:
    prop = session.get(Property, property_id) if property_id is not None else None
    assigned = schedule.default_assignee_id is not None
    work_order = WorkOrder(
        work_order_number=next_number(session, WorkOrder.work_order_number, "WO", now.year),
        property_id=property_id,
        pm_schedule_id=schedule.id,
        generated_for=generated_for,
        title=_title(schedule, prop.name if prop else None),
        description=schedule.description,
        category=schedule.category,
        status=WorkOrderStatus.ASSIGNED if assigned else WorkOrderStatus.OPEN,
        requested_by=requested_by,
        assigned_to=schedule.default_assignee_id,
        assigned_at=now if assigned else None,
        scheduled_date=now + timedelta(days=settings.PM_WORK_ORDER_LEAD_DAYS),
    )
    session.add(work_order)
    session.flush()
    return work_order


def generate_now(
    session: Session,
    schedule_id: int,
    *,
    requested_by: int | None = None,
    now: datetime | None = None,
) -> WorkOrder:
    """Manually generate one work order without moving the schedule forward."""
    now = now or utcnow()
    schedule = get_schedule(session, schedule_id)
    if schedule.status != PMScheduleStatus.ACTIVE:
        raise ValidationFailed("Can only generate work orders from ACTIVE schedules")
    work_order = _build_work_order(
        session,
        schedule,
        property_id=schedule.property_id,
        generated_for=None,
        requested_by=requested_by,
        now=now,
    )
    session.commit()
    session.refresh(work_order)
    logger.info("pm_work_order_generated: %s", work_order.work_order_number)
    return work_order


def _target_property_ids(session: Session, schedule: PMSchedule) -> list[int | None]:
    if schedule.property_id is not None:
        return [schedule.property_id]
    properties = session.exec(select(Property.id).where(Property.not_deleted()).order_by(col(Property.id))).all()
    return list(properties)


def _already_generated(session: Session, schedule_id: int, property_id: int | None, generated_for: date) -> bool:
    statement = select(WorkOrder.id).where(
        WorkOrder.pm_schedule_id == schedule_id,
        WorkOrder.generated_for == generated_for,
    )
    if property_id is None:
        statement = statement.where(col(WorkOrder.property_id).is_(None))
    else:
        statement = statement.where(WorkOrder.property_id == property_id)
    return session.exec(statement.limit(1)).first() is not None


def process_scheduled_generations(session: Session, *, now: datetime | None = None) -> int:
    """Generate work orders for every active schedule that has come due.

    Each schedule is committed on its own; a failing schedule is logged and
    left for the next run.
    """
    now = now or utcnow()
    today = now.date()
    due_schedules = session.exec(
        select(PMSchedule).where(
            PMSchedule.status == PMScheduleStatus.ACTIVE,
            PMSchedule.not_deleted(),
            col(PMSchedule.next_generation_date).is_not(None),
            col(PMSchedule.next_generation_date) <= today,
        )
    ).all()

    generated = 0
    for schedule in due_schedules:
        generated_for = schedule.next_generation_date
        created = 0
        try:
            for property_id in _target_property_ids(session, schedule):
                if _already_generated(session, schedule.id, property_id, generated_for):
                    continue
                _build_work_order(
                    session,
                    schedule,
                    property_id=property_id,
                    generated_for=generated_for,
                    requested_by=schedule.created_by,
                    now=now,
                )
                created += 1

            following = next_generation_date(schedule)
            if following is None:
                schedule.status = PMScheduleStatus.COMPLETED
            schedule.next_generation_date = following
            schedule.last_generated_date = today
            schedule.touch_updated(now)
            session.add(schedule)
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("pm_schedule_generation_failed: %s", schedule.id)
        else:
            generated += created

    logger.info("pm_generation_processed", extra={"affected": generated})
    return generated
