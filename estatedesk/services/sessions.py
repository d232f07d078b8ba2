"""Server-side registry of authenticated sessions.

A session links one access/refresh token pair to an account. The number of
active sessions per account is capped; creating one past the cap evicts the
oldest. Every revocation path writes both token hashes to the revocation
store before the session is reported inactive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlmodel import Session, col, or_, select

from estatedesk.core.config import settings
from estatedesk.core.errors import NotFound, SessionExpired, TokenRejected
from estatedesk.core.security import decode_access_token, decode_refresh_token, hash_token, token_expires_at
from estatedesk.models.auth_session import AuthSession, RevocationReason
from estatedesk.models.base import utcnow
from estatedesk.models.revoked_token import TokenType
from estatedesk.services import revocation

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")


@dataclass(frozen=True)
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None


def parse_device_type(user_agent: str | None) -> str:
    if not user_agent:
        return "unknown"
    ua = user_agent.lower()
    if "ipad" in ua or "tablet" in ua:
        return "tablet"
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        return "mobile"
    return "desktop"


def _idle_timeout() -> timedelta:
    return timedelta(minutes=settings.SESSION_IDLE_TIMEOUT_MINUTES)


def _absolute_timeout() -> timedelta:
    return timedelta(hours=settings.SESSION_ABSOLUTE_TIMEOUT_HOURS)


def _expiry_reason(auth_session: AuthSession, now: datetime) -> RevocationReason | None:
    if auth_session.expires_at <= now:
        return RevocationReason.absolute_timeout
    if auth_session.last_activity_at + _idle_timeout() <= now:
        return RevocationReason.idle_timeout
    return None


def get_by_session_id(session: Session, session_id: str) -> AuthSession | None:
    return session.exec(select(AuthSession).where(AuthSession.session_id == session_id)).first()


def list_active(session: Session, user_id: int) -> list[AuthSession]:
    statement = (
        select(AuthSession)
        .where(AuthSession.user_id == user_id, col(AuthSession.is_active).is_(True))
        .order_by(col(AuthSession.created_at).desc(), col(AuthSession.id).desc())
    )
    return list(session.exec(statement).all())


def revoke_session(
    session: Session,
    auth_session: AuthSession,
    reason: RevocationReason,
    *,
    now: datetime | None = None,
) -> bool:
    """Deactivate a session and revoke both of its tokens. Does not commit.

    Returns False when the session was already inactive.
    """
    if not auth_session.is_active:
        return False

    now = now or utcnow()
    revocation.revoke(
        session,
        auth_session.access_token_hash,
        TokenType.access,
        auth_session.access_expires_at,
        reason,
    )
    revocation.revoke(
        session,
        auth_session.refresh_token_hash,
        TokenType.refresh,
        auth_session.refresh_expires_at,
        reason,
    )
    auth_session.is_active = False
    auth_session.revoked_at = now
    auth_session.revoke_reason = reason
    auth_session.touch_updated(now)
    session.add(auth_session)
    session.flush()

    security_logger.info(
        "session_revoked",
        extra={
            "user_id": auth_session.user_id,
            "session_id": auth_session.session_id,
            "reason": reason.value,
        },
    )
    return True


def create_session(
    session: Session,
    user_id: int,
    *,
    session_id: str,
    access_token: str,
    refresh_token: str,
    client: ClientInfo | None = None,
    now: datetime | None = None,
) -> AuthSession:
    """Register a new session, evicting the oldest ones while the cap is reached. Does not commit."""
    now = now or utcnow()
    client = client or ClientInfo()

    statement = (
        select(AuthSession)
        .where(AuthSession.user_id == user_id, col(AuthSession.is_active).is_(True))
        .order_by(col(AuthSession.created_at).asc(), col(AuthSession.id).asc())
    )
    active = list(session.exec(statement).all())
    limit = max(int(settings.MAX_CONCURRENT_SESSIONS), 1)
    while len(active) >= limit:
        oldest = active.pop(0)
        revoke_session(session, oldest, RevocationReason.session_limit, now=now)

    access_payload = decode_access_token(access_token)
    refresh_payload = decode_refresh_token(refresh_token)

    auth_session = AuthSession(
        session_id=session_id,
        user_id=user_id,
        access_token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        access_expires_at=token_expires_at(access_payload),
        refresh_expires_at=token_expires_at(refresh_payload),
        last_activity_at=now,
        expires_at=now + _absolute_timeout(),
        created_at=now,
        updated_at=now,
        ip_address=client.ip_address,
        user_agent=(client.user_agent or "")[:255] or None,
        device_type=parse_device_type(client.user_agent),
    )
    session.add(auth_session)
    session.flush()
    return auth_session


def rotate_tokens(
    session: Session,
    auth_session: AuthSession,
    *,
    access_token: str,
    refresh_token: str,
    now: datetime | None = None,
) -> AuthSession:
    """Swap the session's token pair, revoking the previous one. Does not commit."""
    now = now or utcnow()
    revocation.revoke(
        session,
        auth_session.access_token_hash,
        TokenType.access,
        auth_session.access_expires_at,
        RevocationReason.rotated,
    )
    revocation.revoke(
        session,
        auth_session.refresh_token_hash,
        TokenType.refresh,
        auth_session.refresh_expires_at,
        RevocationReason.rotated,
    )
    auth_session.access_token_hash = hash_token(access_token)
    auth_session.refresh_token_hash = hash_token(refresh_token)
    auth_session.access_expires_at = token_expires_at(decode_access_token(access_token))
    auth_session.refresh_expires_at = token_expires_at(decode_refresh_token(refresh_token))
    auth_session.last_activity_at = now
    auth_session.touch_updated(now)
    session.add(auth_session)
    session.flush()
    return auth_session


def enforce_timeouts(session: Session, auth_session: AuthSession, *, now: datetime | None = None) -> None:
    """Revoke and raise when the session is past its idle or absolute timeout.

    The revocation is committed before raising so it survives the failed request.
    """
    now = now or utcnow()
    if not auth_session.is_active:
        raise TokenRejected("Session is no longer active")

    reason = _expiry_reason(auth_session, now)
    if reason is None:
        return

    revoke_session(session, auth_session, reason, now=now)
    session.commit()
    if reason == RevocationReason.idle_timeout:
        raise SessionExpired("Session expired due to inactivity")
    raise SessionExpired("Session expired")


def touch(session: Session, session_id: str, *, now: datetime | None = None) -> AuthSession:
    now = now or utcnow()
    auth_session = get_by_session_id(session, session_id)
    if auth_session is None:
        raise TokenRejected("Session not found")

    enforce_timeouts(session, auth_session, now=now)

    auth_session.last_activity_at = now
    session.add(auth_session)
    session.commit()
    session.refresh(auth_session)
    return auth_session


def revoke(
    session: Session,
    session_id: str,
    reason: RevocationReason,
    *,
    now: datetime | None = None,
) -> bool:
    auth_session = get_by_session_id(session, session_id)
    if auth_session is None:
        raise NotFound("Session", session_id)
    revoked = revoke_session(session, auth_session, reason, now=now)
    session.commit()
    return revoked


def revoke_for_user(
    session: Session,
    user_id: int,
    session_id: str,
    *,
    now: datetime | None = None,
) -> None:
    auth_session = get_by_session_id(session, session_id)
    # Another account's session reads as missing.
    if auth_session is None or auth_session.user_id != user_id or not auth_session.is_active:
        raise NotFound("Session", session_id)
    revoke_session(session, auth_session, RevocationReason.logout, now=now)
    session.commit()


def revoke_all(
    session: Session,
    user_id: int,
    *,
    reason: RevocationReason = RevocationReason.logout_all,
    except_session_id: str | None = None,
    now: datetime | None = None,
    commit: bool = True,
) -> int:
    now = now or utcnow()
    revoked = 0
    for auth_session in list_active(session, user_id):
        if except_session_id is not None and auth_session.session_id == except_session_id:
            continue
        if revoke_session(session, auth_session, reason, now=now):
            revoked += 1
    if commit:
        session.commit()
    return revoked


def sweep_sessions(session: Session, *, now: datetime | None = None) -> int:
    """Revoke timed-out sessions and delete inactive ones whose refresh token has expired."""
    now = now or utcnow()
    affected = 0

    stale_statement = select(AuthSession).where(
        col(AuthSession.is_active).is_(True),
        or_(
            col(AuthSession.expires_at) <= now,
            col(AuthSession.last_activity_at) <= now - _idle_timeout(),
        ),
    )
    for auth_session in session.exec(stale_statement).all():
        reason = _expiry_reason(auth_session, now)
        if reason is not None and revoke_session(session, auth_session, reason, now=now):
            affected += 1

    dead_statement = select(AuthSession).where(
        col(AuthSession.is_active).is_(False),
        col(AuthSession.refresh_expires_at) <= now,
    )
    for auth_session in session.exec(dead_statement).all():
        session.delete(auth_session)
        affected += 1

    session.commit()
    if affected:
        logger.info("sessions_swept", extra={"affected": affected})
    return affected
