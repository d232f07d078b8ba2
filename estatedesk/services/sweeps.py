"""Named, idempotent, time-driven jobs.

Every sweep takes a database session and the current time and returns the
number of rows it changed. Running one twice in a row leaves the second run
with nothing to do. Failures are logged per sweep and never propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlmodel import Session

from estatedesk.models.base import utcnow
from estatedesk.services import compliance, invoices, password_reset, pdcs, pm_schedules, revocation, sessions
from estatedesk.services.attempts import sweep_attempt_counters

logger = logging.getLogger("sweeps")

SweepFn = Callable[..., int]


@dataclass
class SweepResult:
    name: str
    ok: bool
    affected: int = 0
    error: str | None = None


SWEEPS: dict[str, SweepFn] = {
    "revoked-tokens": revocation.sweep_expired,
    "sessions": sessions.sweep_sessions,
    "attempt-counters": sweep_attempt_counters,
    "password-reset-tokens": password_reset.sweep_reset_tokens,
    "invoices-overdue": invoices.mark_overdue_invoices,
    "invoices-late-fees": invoices.apply_late_fees,
    "invoices-reminders": invoices.send_payment_reminders,
    "pdcs-due": pdcs.mark_due_pdcs,
    "compliance-statuses": compliance.update_schedule_statuses,
    "pm-generation": pm_schedules.process_scheduled_generations,
}


def run_sweep(session: Session, name: str, *, now: datetime | None = None) -> SweepResult:
    sweep = SWEEPS[name]
    now = now or utcnow()
    try:
        affected = sweep(session, now=now)
    except Exception as exc:
        session.rollback()
        logger.exception("sweep_failed", extra={"sweep": name})
        return SweepResult(name=name, ok=False, error=str(exc))

    logger.info("sweep_completed", extra={"sweep": name, "affected": affected})
    return SweepResult(name=name, ok=True, affected=affected)


def run_all(session: Session, *, now: datetime | None = None) -> list[SweepResult]:
    # Overdue marking runs before late fees so a newly overdue invoice is charged in the same pass.
    now = now or utcnow()
    return [run_sweep(session, name, now=now) for name in SWEEPS]
