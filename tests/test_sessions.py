import time
from datetime import timedelta

import pytest
from jose import jwt
from sqlmodel import Session, select

from estatedesk.core.config import settings
from estatedesk.core.errors import (
    AccountLocked,
    InvalidCredential,
    NotFound,
    RateLimited,
    SessionExpired,
    TokenRejected,
)
from estatedesk.core.security import (
    create_access_token,
    decode_access_token,
    decode_refresh_token,
    hash_token,
    token_expires_at,
)
from estatedesk.models.auth_session import AuthSession, RevocationReason
from estatedesk.models.base import utcnow
from estatedesk.models.revoked_token import RevokedToken, TokenType
from estatedesk.services import auth as auth_service
from estatedesk.services import revocation, sessions
from estatedesk.services.attempts import AttemptTracker, sweep_attempt_counters

EMAIL = "owner@estatedesk.dev"
PASSWORD = "Str0ng!Pass"
WRONG = "Wr0ng!Pass"


def _fail(db: Session, now) -> None:
    with pytest.raises(InvalidCredential):
        auth_service.login(db, email=EMAIL, password=WRONG, now=now)


def test_login_allowed_again_once_window_elapses(db: Session, make_user) -> None:
    make_user(EMAIL)
    start = utcnow()
    for i in range(5):
        _fail(db, start + timedelta(seconds=i))

    with pytest.raises(RateLimited) as blocked:
        auth_service.login(db, email=EMAIL, password=PASSWORD, now=start + timedelta(minutes=1))
    assert 0 < blocked.value.retry_after_seconds <= 15 * 60

    result = auth_service.login(db, email=EMAIL, password=PASSWORD, now=start + timedelta(minutes=16))
    assert result.user.email == EMAIL
    assert result.user.failed_login_attempts == 0


def test_account_locks_at_threshold_and_unlocks_after_duration(db: Session, make_user) -> None:
    make_user(EMAIL)
    start = utcnow()
    for i in range(5):
        _fail(db, start + timedelta(seconds=i))
    second_window = start + timedelta(minutes=16)
    for i in range(5):
        _fail(db, second_window + timedelta(seconds=i))

    with pytest.raises(AccountLocked) as locked:
        auth_service.login(db, email=EMAIL, password=PASSWORD, now=second_window + timedelta(minutes=16))
    assert "Retry-After" in locked.value.headers

    result = auth_service.login(db, email=EMAIL, password=PASSWORD, now=second_window + timedelta(minutes=31))
    assert result.user.account_locked is False
    assert result.user.locked_until is None
    assert result.user.failed_login_attempts == 0


def test_administrative_lock_has_no_expiry(db: Session, make_user) -> None:
    user = make_user(EMAIL)
    user.account_locked = True
    db.add(user)
    db.commit()

    with pytest.raises(AccountLocked) as locked:
        auth_service.login(db, email=EMAIL, password=PASSWORD, now=utcnow() + timedelta(days=30))
    assert "Retry-After" not in locked.value.headers


def test_inactive_account_rejected_with_generic_error(db: Session, make_user) -> None:
    user = make_user(EMAIL)
    user.is_active = False
    db.add(user)
    db.commit()

    with pytest.raises(InvalidCredential):
        auth_service.login(db, email=EMAIL, password=PASSWORD)


def test_idle_timeout_revokes_session(db: Session, make_user) -> None:
    make_user(EMAIL)
    start = utcnow()
    result = auth_service.login(db, email=EMAIL, password=PASSWORD, now=start)

    auth_service.authenticate(db, result.access_token, now=start + timedelta(minutes=20))
    later = start + timedelta(minutes=51)
    with pytest.raises(SessionExpired):
        auth_service.authenticate(db, result.access_token, now=later)

    auth_session = sessions.get_by_session_id(db, result.session_id)
    assert auth_session.is_active is False
    assert auth_session.revoke_reason == RevocationReason.idle_timeout
    assert revocation.is_revoked(db, hash_token(result.access_token), now=later)
    assert revocation.is_revoked(db, hash_token(result.refresh_token), now=later)


def test_absolute_timeout_applies_despite_activity(db: Session, make_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "SESSION_ABSOLUTE_TIMEOUT_HOURS", 1)
    make_user(EMAIL)
    start = utcnow()
    result = auth_service.login(db, email=EMAIL, password=PASSWORD, now=start)

    for minutes in (20, 40, 55):
        auth_service.authenticate(db, result.access_token, now=start + timedelta(minutes=minutes))

    with pytest.raises(SessionExpired):
        auth_service.refresh(db, result.refresh_token, now=start + timedelta(minutes=61))

    auth_session = sessions.get_by_session_id(db, result.session_id)
    assert auth_session.revoke_reason == RevocationReason.absolute_timeout


def test_rejected_token_after_eviction(db: Session, make_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "MAX_CONCURRENT_SESSIONS", 2)
    make_user(EMAIL)
    start = utcnow()
    first = auth_service.login(db, email=EMAIL, password=PASSWORD, now=start)
    auth_service.login(db, email=EMAIL, password=PASSWORD, now=start + timedelta(seconds=1))
    auth_service.login(db, email=EMAIL, password=PASSWORD, now=start + timedelta(seconds=2))

    evicted = sessions.get_by_session_id(db, first.session_id)
    assert evicted.revoke_reason == RevocationReason.session_limit
    with pytest.raises(TokenRejected):
        auth_service.authenticate(db, first.access_token, now=start + timedelta(seconds=3))
    assert len(sessions.list_active(db, first.user.id)) == 2


def test_session_sweep_is_idempotent(db: Session, make_user) -> None:
    make_user(EMAIL)
    start = utcnow()
    auth_service.login(db, email=EMAIL, password=PASSWORD, now=start)
    auth_service.login(db, email=EMAIL, password=PASSWORD, now=start + timedelta(minutes=25))

    assert sessions.sweep_sessions(db, now=start + timedelta(minutes=31)) == 1
    assert sessions.sweep_sessions(db, now=start + timedelta(minutes=31)) == 0

    active = db.exec(select(AuthSession).where(AuthSession.is_active == True)).all()  # noqa: E712
    assert len(active) == 1


def test_revocation_sweep_keeps_unexpired_entries(db: Session) -> None:
    now = utcnow()
    revocation.revoke(db, "a" * 64, TokenType.access, now - timedelta(minutes=1), RevocationReason.logout)
    revocation.revoke(db, "b" * 64, TokenType.refresh, now + timedelta(days=1), RevocationReason.logout)
    revocation.revoke(db, "b" * 64, TokenType.refresh, now + timedelta(days=2), RevocationReason.rotated)
    db.commit()

    assert revocation.sweep_expired(db, now=now) == 1
    assert revocation.sweep_expired(db, now=now) == 0

    remaining = db.exec(select(RevokedToken)).all()
    assert [entry.token_hash for entry in remaining] == ["b" * 64]
    assert remaining[0].reason == RevocationReason.logout
    assert revocation.is_revoked(db, "b" * 64, now=now)
    assert not revocation.is_revoked(db, "a" * 64, now=now)


def test_logout_keeps_revocations_for_each_token_lifetime(db: Session, make_user) -> None:
    make_user(EMAIL)
    result = auth_service.login(db, email=EMAIL, password=PASSWORD)
    access_exp = token_expires_at(decode_access_token(result.access_token))
    refresh_exp = token_expires_at(decode_refresh_token(result.refresh_token))

    auth_service.logout(db, sessions.get_by_session_id(db, result.session_id))

    entries = {entry.token_type: entry for entry in db.exec(select(RevokedToken)).all()}
    assert entries[TokenType.access].token_hash == hash_token(result.access_token)
    assert entries[TokenType.access].expires_at == access_exp
    assert entries[TokenType.refresh].token_hash == hash_token(result.refresh_token)
    assert entries[TokenType.refresh].expires_at == refresh_exp
    assert revocation.is_revoked(db, hash_token(result.access_token), now=access_exp)
    assert revocation.sweep_expired(db, now=access_exp) == 0


def test_revoked_token_stays_revoked_while_signature_verifies(db: Session) -> None:
    token = create_access_token(1, session_id="sid-edge", expires_minutes=0)
    expires_at = token_expires_at(jwt.get_unverified_claims(token))
    token_hash = hash_token(token)
    revocation.revoke(db, token_hash, TokenType.access, expires_at, RevocationReason.logout)
    db.commit()

    last_accepted_instant = expires_at + timedelta(milliseconds=999)
    assert revocation.is_revoked(db, token_hash, now=last_accepted_instant)
    assert revocation.sweep_expired(db, now=last_accepted_instant) == 0

    released = expires_at + revocation.EXPIRY_LEEWAY
    assert not revocation.is_revoked(db, token_hash, now=released)
    while utcnow() < released:
        time.sleep(0.05)
    with pytest.raises(ValueError):
        decode_access_token(token)
    assert revocation.sweep_expired(db, now=released) == 1


def test_revoke_by_session_id(db: Session, make_user) -> None:
    make_user(EMAIL)
    start = utcnow()
    result = auth_service.login(db, email=EMAIL, password=PASSWORD, now=start)

    assert sessions.revoke(db, result.session_id, RevocationReason.logout, now=start) is True
    assert sessions.revoke(db, result.session_id, RevocationReason.logout, now=start) is False

    revoked = sessions.get_by_session_id(db, result.session_id)
    assert revoked.is_active is False
    assert revoked.revoke_reason == RevocationReason.logout
    assert revocation.is_revoked(db, hash_token(result.access_token), now=start)
    assert revocation.is_revoked(db, hash_token(result.refresh_token), now=start)
    with pytest.raises(TokenRejected):
        auth_service.authenticate(db, result.access_token, now=start)
    with pytest.raises(NotFound):
        sessions.revoke(db, "missing-session", RevocationReason.logout)


def test_timestamps_round_trip_as_naive_utc(db: Session) -> None:
    stamp = utcnow()
    revocation.revoke(db, "c" * 64, TokenType.access, stamp, RevocationReason.logout)
    db.commit()
    db.expire_all()

    stored = db.exec(select(RevokedToken).where(RevokedToken.token_hash == "c" * 64)).one()
    assert stored.expires_at.tzinfo is None
    assert stored.expires_at == stamp
    assert stored.created_at.tzinfo is None


def test_attempt_tracker_window_and_purge(db: Session) -> None:
    tracker = AttemptTracker(scope="login", max_attempts=2, window=timedelta(minutes=15))
    start = utcnow()
    tracker.record_attempt(db, "key", now=start)
    tracker.record_attempt(db, "key", now=start + timedelta(minutes=1))

    assert tracker.is_blocked(db, "key", now=start + timedelta(minutes=2))
    assert tracker.retry_after_seconds(db, "key", now=start + timedelta(minutes=5)) == 600
    assert not tracker.is_blocked(db, "key", now=start + timedelta(minutes=15))
    assert tracker.attempts(db, "other", now=start) == 0

    db.commit()
    assert sweep_attempt_counters(db, now=start + timedelta(minutes=16)) == 1
    assert sweep_attempt_counters(db, now=start + timedelta(minutes=16)) == 0
