from datetime import date, datetime

import pytest
from sqlmodel import Session, select

from estatedesk.core.errors import ValidationFailed
from estatedesk.models.maintenance import PMScheduleStatus, RecurrenceType, WorkOrder, WorkOrderStatus
from estatedesk.models.property import Property
from estatedesk.models.user import Role
from estatedesk.services import pm_schedules as pm_service

NOW = datetime(2026, 5, 10, 9, 0, 0)
TODAY = NOW.date()


@pytest.fixture
def properties(db: Session) -> list[Property]:
    items = [Property(name="Block A"), Property(name="Block B")]
    db.add_all(items)
    db.commit()
    for item in items:
        db.refresh(item)
    return items


def _work_orders(db: Session) -> list[WorkOrder]:
    return list(db.exec(select(WorkOrder).order_by(WorkOrder.id)).all())


def test_generation_advances_schedule_and_is_idempotent(db: Session, properties, make_user) -> None:
    technician = make_user("tech@estatedesk.dev", role=Role.MAINTENANCE_SUPERVISOR)
    schedule = pm_service.create_schedule(
        db,
        name="HVAC filter change",
        category="hvac",
        recurrence=RecurrenceType.MONTHLY,
        start_date=date(2026, 5, 1),
        property_id=properties[0].id,
        default_assignee_id=technician.id,
    )

    assert pm_service.process_scheduled_generations(db, now=NOW) == 1
    assert pm_service.process_scheduled_generations(db, now=NOW) == 0

    db.refresh(schedule)
    assert schedule.next_generation_date == date(2026, 6, 1)
    assert schedule.last_generated_date == TODAY

    (work_order,) = _work_orders(db)
    assert work_order.work_order_number == "WO-2026-0001"
    assert work_order.title == "HVAC filter change - Block A"
    assert work_order.category == "HVAC"
    assert work_order.generated_for == date(2026, 5, 1)
    assert work_order.status == WorkOrderStatus.ASSIGNED
    assert work_order.assigned_to == technician.id


def test_schedule_without_property_covers_every_property(db: Session, properties) -> None:
    pm_service.create_schedule(
        db,
        name="Roof inspection",
        category="roof",
        recurrence=RecurrenceType.ANNUALLY,
        start_date=date(2026, 5, 10),
    )

    assert pm_service.process_scheduled_generations(db, now=NOW) == 2

    work_orders = _work_orders(db)
    assert {item.property_id for item in work_orders} == {prop.id for prop in properties}
    assert all(item.status == WorkOrderStatus.OPEN for item in work_orders)


def test_schedule_completes_after_end_date(db: Session, properties) -> None:
    schedule = pm_service.create_schedule(
        db,
        name="Pest control",
        category="pest",
        recurrence=RecurrenceType.QUARTERLY,
        start_date=date(2026, 5, 1),
        end_date=date(2026, 7, 1),
        property_id=properties[1].id,
    )

    pm_service.process_scheduled_generations(db, now=NOW)

    db.refresh(schedule)
    assert schedule.status == PMScheduleStatus.COMPLETED
    assert schedule.next_generation_date is None


def test_paused_schedule_is_skipped_and_manual_generation_allowed(db: Session, properties) -> None:
    schedule = pm_service.create_schedule(
        db,
        name="Generator test run",
        category="electrical",
        recurrence=RecurrenceType.MONTHLY,
        start_date=date(2026, 5, 1),
        property_id=properties[0].id,
    )
    pm_service.update_status(db, schedule.id, PMScheduleStatus.PAUSED, now=NOW)

    assert pm_service.process_scheduled_generations(db, now=NOW) == 0
    with pytest.raises(ValidationFailed):
        pm_service.generate_now(db, schedule.id, now=NOW)

    pm_service.update_status(db, schedule.id, PMScheduleStatus.ACTIVE, now=NOW)
    manual = pm_service.generate_now(db, schedule.id, now=NOW)
    again = pm_service.generate_now(db, schedule.id, now=NOW)
    assert manual.generated_for is None
    assert manual.work_order_number != again.work_order_number

    db.refresh(schedule)
    assert schedule.next_generation_date == date(2026, 5, 1)

    with pytest.raises(ValidationFailed):
        pm_service.delete_schedule(db, schedule.id, now=NOW)

    pm_service.update_status(db, schedule.id, PMScheduleStatus.COMPLETED, now=NOW)
    with pytest.raises(ValidationFailed):
        pm_service.update_status(db, schedule.id, PMScheduleStatus.ACTIVE, now=NOW)


def test_failed_schedule_is_not_counted(db: Session, properties, monkeypatch) -> None:
    broken = pm_service.create_schedule(
        db,
        name="Lift service",
        category="lifts",
        recurrence=RecurrenceType.MONTHLY,
        start_date=date(2026, 5, 1),
        property_id=properties[0].id,
    )
    healthy = pm_service.create_schedule(
        db,
        name="Pump check",
        category="plumbing",
        recurrence=RecurrenceType.MONTHLY,
        start_date=date(2026, 5, 1),
        property_id=properties[1].id,
    )
    broken_id = broken.id
    advance = pm_service.next_generation_date

    def flaky(schedule):
        if schedule.id == broken_id:
            raise RuntimeError("calendar unavailable")
        return advance(schedule)

    monkeypatch.setattr(pm_service, "next_generation_date", flaky)

    assert pm_service.process_scheduled_generations(db, now=NOW) == 1

    (work_order,) = _work_orders(db)
    assert work_order.pm_schedule_id == healthy.id
    db.refresh(broken)
    assert broken.next_generation_date == date(2026, 5, 1)


def test_end_date_must_follow_start_date(db: Session) -> None:
    with pytest.raises(ValidationFailed):
        pm_service.create_schedule(
            db,
            name="Facade cleaning",
            category="cleaning",
            recurrence=RecurrenceType.SEMI_ANNUALLY,
            start_date=date(2026, 5, 1),
            end_date=date(2026, 5, 1),
        )
