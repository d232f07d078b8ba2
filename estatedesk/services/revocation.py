from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlmodel import Session, col, select

from estatedesk.models.auth_session import RevocationReason
from estatedesk.models.base import utcnow
from estatedesk.models.revoked_token import RevokedToken, TokenType

logger = logging.getLogger(__name__)

# JWT libraries accept a token through the whole second named by its exp claim.
EXPIRY_LEEWAY = timedelta(seconds=1)


def revoke(
    session: Session,
    token_hash: str,
    token_type: TokenType,
    expires_at: datetime,
    reason: RevocationReason,
) -> RevokedToken:
    """Add a token hash to the revocation list. Revoking a hash twice keeps the first entry."""
    existing = session.exec(select(RevokedToken).where(RevokedToken.token_hash == token_hash)).first()
    if existing is not None:
        return existing

    entry = RevokedToken(
        token_hash=token_hash,
        token_type=token_type,
        expires_at=expires_at,
        reason=reason,
    )
    session.add(entry)
    session.flush()
    return entry


def is_revoked(session: Session, token_hash: str, *, now: datetime | None = None) -> bool:
    now = now or utcnow()
    entry = session.exec(select(RevokedToken).where(RevokedToken.token_hash == token_hash)).first()
    if entry is None:
        return False
    return now < entry.expires_at + EXPIRY_LEEWAY


def sweep_expired(session: Session, *, now: datetime | None = None) -> int:
    """Delete entries whose token can no longer pass signature checks. Returns number of rows deleted."""
    now = now or utcnow()
    cutoff = now - EXPIRY_LEEWAY
    expired = session.exec(select(RevokedToken).where(col(RevokedToken.expires_at) <= cutoff)).all()
    for entry in expired:
        session.delete(entry)
    session.commit()
    removed = len(expired)
    if removed:
        logger.info("revoked_tokens_purged", extra={"affected": removed})
    return removed
