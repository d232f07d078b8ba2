from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlmodel import Session, select

from estatedesk.core.config import settings
from estatedesk.core.errors import (
    AccountLocked,
    Conflict,
    InvalidCredential,
    RateLimited,
    TokenRejected,
    ValidationFailed,
)
from estatedesk.core.password_policy import validate_password
from estatedesk.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    hash_token,
    verify_password,
    verify_token_hash,
)
from estatedesk.models.auth_session import AuthSession, RevocationReason
from estatedesk.models.base import utcnow
from estatedesk.models.user import Role, User
from estatedesk.services import revocation, sessions
from estatedesk.services.attempts import login_tracker
from estatedesk.services.sessions import ClientInfo

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")


@dataclass
class LoginResult:
    user: User
    session_id: str
    access_token: str
    refresh_token: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(session: Session, email: str) -> User | None:
    statement = select(User).where(func.lower(User.email) == normalize_email(email))
    return session.exec(statement).first()


def register(
    session: Session,
    *,
    email: str,
    full_name: str,
    password: str,
    role: Role = Role.TENANT,
) -> User:
    ok, problems = validate_password(password)
    if not ok:
        raise ValidationFailed("Password does not meet requirements", errors={"password": problems})

    if get_user_by_email(session, email) is not None:
        raise Conflict("User with this email already exists")

    user = User(
        email=normalize_email(email),
        full_name=full_name.strip(),
        password_hash=hash_password(password),
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    security_logger.info("user_registered", extra={"user_id": user.id, "email": user.email})
    return user


def _issue_session(
    session: Session,
    user: User,
    client: ClientInfo | None,
    now: datetime,
) -> LoginResult:
    if user.id is None:
        raise InvalidCredential("User record is invalid")

    session_id = str(uuid.uuid4())
    access_token = create_access_token(user.id, session_id=session_id, extra_claims={"role": user.role.value})
    refresh_token = create_refresh_token(user.id, session_id=session_id)
    sessions.create_session(
        session,
        user.id,
        session_id=session_id,
        access_token=access_token,
        refresh_token=refresh_token,
        client=client,
        now=now,
    )
    return LoginResult(
        user=user,
        session_id=session_id,
        access_token=access_token,
        refresh_token=refresh_token,
    )


def _reject(session: Session, email: str, event: str, *, now: datetime) -> InvalidCredential:
    login_tracker().record_attempt(session, email, now=now)
    session.commit()
    security_logger.warning(event, extra={"email": email})
    return InvalidCredential()


def login(
    session: Session,
    *,
    email: str,
    password: str,
    client: ClientInfo | None = None,
    now: datetime | None = None,
) -> LoginResult:
    """Verify credentials and open a new session.

    Checks run in a fixed order: rate limit, account lookup, lockout,
    active flag, password. Each rejection is logged on the security logger.
    """
    now = now or utcnow()
    key = normalize_email(email)
    tracker = login_tracker()

    if tracker.is_blocked(session, key, now=now):
        retry_after = tracker.retry_after_seconds(session, key, now=now)
        security_logger.warning("login_rate_limited", extra={"email": key})
        raise RateLimited(
            "Too many login attempts. Please try again later.",
            retry_after_seconds=retry_after,
        )

    user = get_user_by_email(session, key)
    if user is None:
        raise _reject(session, key, "login_unknown_email", now=now)

    if user.is_locked_at(now):
        security_logger.warning("login_account_locked", extra={"email": key, "user_id": user.id})
        headers = {}
        message = "Account is locked"
        if user.locked_until is not None:
            seconds = max(int(math.ceil((user.locked_until - now).total_seconds())), 1)
            headers["Retry-After"] = str(seconds)
            message = f"Account is locked. Try again in {math.ceil(seconds / 60)} minutes."
        raise AccountLocked(message, headers=headers)

    if user.lock_expired_at(now):
        user.clear_lockout()
        session.add(user)
        security_logger.info("account_unlocked", extra={"email": key, "user_id": user.id})

    if not user.is_active:
        raise _reject(session, key, "login_inactive_account", now=now)

    if not verify_password(password, user.password_hash):
        user.failed_login_attempts += 1
        if user.failed_login_attempts >= settings.ACCOUNT_LOCKOUT_THRESHOLD:
            user.account_locked = True
            user.locked_until = now + timedelta(minutes=settings.ACCOUNT_LOCKOUT_MINUTES)
            security_logger.warning("account_locked", extra={"email": key, "user_id": user.id})
        session.add(user)
        raise _reject(session, key, "login_failed", now=now)

    user.clear_lockout()
    user.last_login_at = now
    user.touch_updated(now)
    session.add(user)
    tracker.reset(session, key)
    result = _issue_session(session, user, client, now)
    session.commit()
    session.refresh(user)

    security_logger.info(
        "login_succeeded",
        extra={"email": key, "user_id": user.id, "session_id": result.session_id},
    )
    return result


def refresh(session: Session, refresh_token: str, *, now: datetime | None = None) -> LoginResult:
    now = now or utcnow()
    try:
        payload = decode_refresh_token(refresh_token)
        user_id = int(payload["sub"])
        session_id = str(payload["sid"])
    except (KeyError, TypeError, ValueError):
        raise TokenRejected("Invalid refresh token")

    token_hash = hash_token(refresh_token)
    if revocation.is_revoked(session, token_hash, now=now):
        security_logger.warning("refresh_token_reused", extra={"user_id": user_id, "session_id": session_id})
        raise TokenRejected("Refresh token has been revoked")

    auth_session = sessions.get_by_session_id(session, session_id)
    if auth_session is None or auth_session.user_id != user_id:
        raise TokenRejected("Invalid refresh token")
    if not verify_token_hash(refresh_token, auth_session.refresh_token_hash):
        raise TokenRejected("Invalid refresh token")

    sessions.enforce_timeouts(session, auth_session, now=now)

    user = session.get(User, user_id)
    if user is None or not user.is_active:
        raise TokenRejected("Invalid refresh token")

    access_token = create_access_token(user_id, session_id=session_id, extra_claims={"role": user.role.value})
    new_refresh_token = create_refresh_token(user_id, session_id=session_id)
    sessions.rotate_tokens(
        session,
        auth_session,
        access_token=access_token,
        refresh_token=new_refresh_token,
        now=now,
    )
    session.commit()

    return LoginResult(
        user=user,
        session_id=session_id,
        access_token=access_token,
        refresh_token=new_refresh_token,
    )


def authenticate(
    session: Session,
    access_token: str,
    *,
    now: datetime | None = None,
) -> tuple[User, AuthSession]:
    """Resolve the account behind an access token and record activity on its session."""
    now = now or utcnow()
    try:
        payload = decode_access_token(access_token)
        user_id = int(payload["sub"])
        session_id = str(payload["sid"])
    except (KeyError, TypeError, ValueError):
        raise TokenRejected()

    if revocation.is_revoked(session, hash_token(access_token), now=now):
        raise TokenRejected("Token has been revoked")

    user = session.get(User, user_id)
    if user is None or not user.is_active:
        raise TokenRejected()

    auth_session = sessions.get_by_session_id(session, session_id)
    if auth_session is None or auth_session.user_id != user_id:
        raise TokenRejected()
    if not verify_token_hash(access_token, auth_session.access_token_hash):
        raise TokenRejected()

    auth_session = sessions.touch(session, session_id, now=now)
    return user, auth_session


def logout(session: Session, auth_session: AuthSession, *, now: datetime | None = None) -> None:
    sessions.revoke_session(session, auth_session, RevocationReason.logout, now=now)
    session.commit()


def logout_all(
    session: Session,
    user_id: int,
    *,
    keep_session_id: str | None = None,
    now: datetime | None = None,
) -> int:
    return sessions.revoke_all(
        session,
        user_id,
        reason=RevocationReason.logout_all,
        except_session_id=keep_session_id,
        now=now,
    )
