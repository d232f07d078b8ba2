"""Database-backed attempt counters with a fixed window per key.

Every API worker and every service instance shares the same
``attempt_counters`` rows, so a limit holds across processes.
Stale rows are removed by :func:`sweep_attempt_counters`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlmodel import Session, col, select

from estatedesk.core.config import settings
from estatedesk.models.attempt_counter import AttemptCounter
from estatedesk.models.base import utcnow

logger = logging.getLogger(__name__)

LOGIN_SCOPE = "login"
PASSWORD_RESET_SCOPE = "password_reset"


@dataclass(frozen=True)
class AttemptTracker:
    scope: str
    max_attempts: int
    window: timedelta

    def _get(self, session: Session, key: str) -> AttemptCounter | None:
        statement = select(AttemptCounter).where(
            AttemptCounter.scope == self.scope,
            AttemptCounter.key == key,
        )
        return session.exec(statement).first()

    def _window_elapsed(self, counter: AttemptCounter, now: datetime) -> bool:
        return counter.window_start + self.window <= now

    def attempts(self, session: Session, key: str, *, now: datetime | None = None) -> int:
        now = now or utcnow()
        counter = self._get(session, key)
        if counter is None or self._window_elapsed(counter, now):
            return 0
        return counter.attempt_count

    def is_blocked(self, session: Session, key: str, *, now: datetime | None = None) -> bool:
        return self.attempts(session, key, now=now) >= self.max_attempts

    def retry_after_seconds(self, session: Session, key: str, *, now: datetime | None = None) -> int:
        now = now or utcnow()
        counter = self._get(session, key)
        if counter is None:
            return 0
        remaining = (counter.window_start + self.window - now).total_seconds()
        return max(int(math.ceil(remaining)), 0)

    def record_attempt(self, session: Session, key: str, *, now: datetime | None = None) -> AttemptCounter:
        now = now or utcnow()
        counter = self._get(session, key)
        if counter is None:
            counter = AttemptCounter(scope=self.scope, key=key, attempt_count=0, window_start=now)
            session.add(counter)
        elif self._window_elapsed(counter, now):
            counter.attempt_count = 0
            counter.window_start = now

        counter.attempt_count += 1
        counter.last_attempt_at = now
        counter.touch_updated(now)
        session.flush()
        return counter

    def reset(self, session: Session, key: str) -> None:
        counter = self._get(session, key)
        if counter is not None:
            session.delete(counter)
            session.flush()

    def purge_expired(self, session: Session, *, now: datetime | None = None) -> int:
        now = now or utcnow()
        statement = select(AttemptCounter).where(
            AttemptCounter.scope == self.scope,
            col(AttemptCounter.window_start) <= now - self.window,
        )
        stale = session.exec(statement).all()
        for counter in stale:
            session.delete(counter)
        session.flush()
        return len(stale)


def login_tracker() -> AttemptTracker:
    return AttemptTracker(
        scope=LOGIN_SCOPE,
        max_attempts=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
        window=timedelta(minutes=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES),
    )


def password_reset_tracker() -> AttemptTracker:
    return AttemptTracker(
        scope=PASSWORD_RESET_SCOPE,
        max_attempts=settings.PASSWORD_RESET_MAX_ATTEMPTS,
        window=timedelta(minutes=settings.PASSWORD_RESET_WINDOW_MINUTES),
    )


def sweep_attempt_counters(session: Session, *, now: datetime | None = None) -> int:
    now = now or utcnow()
    removed = 0
    for tracker in (login_tracker(), password_reset_tracker()):
        removed += tracker.purge_expired(session, now=now)
    session.commit()
    if removed:
        logger.info("attempt_counters_purged", extra={"affected": removed})
    return removed
