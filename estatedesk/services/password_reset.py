from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta

from sqlmodel import Session, col, or_, select

from estatedesk.core.config import settings
from estatedesk.core.errors import RateLimited, ValidationFailed
from estatedesk.core.password_policy import validate_password
from estatedesk.core.security import generate_reset_token, hash_password, hash_token
from estatedesk.models.auth_session import RevocationReason
from estatedesk.models.base import utcnow
from estatedesk.models.password_reset import PasswordResetToken
from estatedesk.models.user import User
from estatedesk.services import sessions
from estatedesk.services.attempts import password_reset_tracker
from estatedesk.services.auth import get_user_by_email, normalize_email
from estatedesk.services.email import notify
from estatedesk.services.notification_templates import build_password_reset_email

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")

INVALID_TOKEN_MESSAGE = "Invalid or expired reset token"


def request_reset(session: Session, email: str, *, now: datetime | None = None) -> str | None:
    """Issue a reset token and email it.

    Unknown and inactive accounts get the same outward result as real ones.
    Returns the raw token when one was issued so callers in tests can use it;
    the API never exposes it.
    """
    now = now or utcnow()
    key = normalize_email(email)
    tracker = password_reset_tracker()
    if tracker.is_blocked(session, key, now=now):
        security_logger.warning("password_reset_rate_limited", extra={"email": key})
        raise RateLimited(
            "Too many password reset requests. Please try again later.",
            retry_after_seconds=tracker.retry_after_seconds(session, key, now=now),
        )
    tracker.record_attempt(session, key, now=now)

    user = get_user_by_email(session, key)
    if user is None or not user.is_active or user.id is None:
        session.commit()
        security_logger.info("password_reset_requested_unknown", extra={"email": key})
        return None

    pending = session.exec(
        select(PasswordResetToken).where(
            PasswordResetToken.user_id == user.id,
            col(PasswordResetToken.used_at).is_(None),
        )
    ).all()
    for token_row in pending:
        token_row.used_at = now
        session.add(token_row)

    token = generate_reset_token()
    session.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=now + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_MINUTES),
        )
    )
    session.commit()
    security_logger.info("password_reset_requested", extra={"email": key, "user_id": user.id})

    notify(
        to_address=user.email,
        content=build_password_reset_email(
            full_name=user.full_name,
            token=token,
            expires_minutes=settings.PASSWORD_RESET_TOKEN_MINUTES,
        ),
    )
    return token


def _valid_token_row(session: Session, token: str, now: datetime) -> PasswordResetToken:
    if not token:
        raise ValidationFailed(INVALID_TOKEN_MESSAGE)
    row = session.exec(select(PasswordResetToken).where(PasswordResetToken.token_hash == hash_token(token))).first()
    if row is None or row.used_at is not None or row.expires_at <= now:
        raise ValidationFailed(INVALID_TOKEN_MESSAGE)
    return row


def validate_token(session: Session, token: str, *, now: datetime | None = None) -> int:
    """Return the whole minutes left before the token expires."""
    now = now or utcnow()
    row = _valid_token_row(session, token, now)
    return max(int(math.ceil((row.expires_at - now).total_seconds() / 60)), 0)


def confirm_reset(session: Session, token: str, new_password: str, *, now: datetime | None = None) -> User:
    now = now or utcnow()
    row = _valid_token_row(session, token, now)

    ok, problems = validate_password(new_password)
    if not ok:
        raise ValidationFailed("Password does not meet requirements", errors={"password": problems})

    user = session.get(User, row.user_id)
    if user is None or not user.is_active:
        raise ValidationFailed(INVALID_TOKEN_MESSAGE)

    user.password_hash = hash_password(new_password)
    user.password_changed_at = now
    user.clear_lockout()
    user.touch_updated(now)
    row.used_at = now
    session.add(user)
    session.add(row)

    revoked = sessions.revoke_all(
        session,
        user.id,
        reason=RevocationReason.password_reset,
        now=now,
        commit=False,
    )
    session.commit()
    session.refresh(user)
    security_logger.info(
        "password_reset_completed",
        extra={"user_id": user.id, "affected": revoked},
    )
    return user


def sweep_reset_tokens(session: Session, *, now: datetime | None = None) -> int:
    now = now or utcnow()
    stale = session.exec(
        select(PasswordResetToken).where(
            or_(
                col(PasswordResetToken.expires_at) <= now,
                col(PasswordResetToken.used_at).is_not(None),
            )
        )
    ).all()
    for row in stale:
        session.delete(row)
    session.commit()
    if stale:
        logger.info("password_reset_tokens_purged", extra={"affected": len(stale)})
    return len(stale)
