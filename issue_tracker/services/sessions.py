"""Refresh-token session persistence."""

import logging
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from issue_tracker.db.models.refresh_token import RefreshToken
from issue_tracker.errors import Ok, Result, unauthorized
from issue_tracker.security.jwt import hash_refresh_token

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Why a presented refresh token was or was not accepted."""

    ACTIVE = "active"
    NOT_FOUND = "not_found"
    REVOKED = "revoked"
    EXPIRED = "expired"


class SessionStore:
    """Create, validate and revoke refresh-token records.

    Tokens are looked up by their SHA-256 digest; the raw value is never
    stored. Every mutation is a single statement so concurrent logouts are
    harmless.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, user_id: UUID, token: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(
            user_id=user_id,
            token_hash=hash_refresh_token(token),
            expires_at=expires_at,
            revoked=False,
        )
        self.session.add(record)
        self.session.flush()
        return record

    def lookup(self, token: str, now: datetime | None = None) -> tuple[SessionState, RefreshToken | None]:
        """Classify a token without side effects."""
        now = now or datetime.now(timezone.utc)
        record = self.session.execute(
            select(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(token))
        ).scalar_one_or_none()

        if record is None:
            return SessionState.NOT_FOUND, None
        if record.revoked:
            return SessionState.REVOKED, record
        if not record.is_active(now):
            return SessionState.EXPIRED, record
        return SessionState.ACTIVE, record

    def validate(self, token: str, now: datetime | None = None) -> Result[RefreshToken]:
        """Return the session only if it is neither revoked nor expired.

        All failure states look the same to the caller. An expired row is
        deleted and flushed; the caller commits so the delete survives the
        rejection.
        """
        state, record = self.lookup(token, now)
        if state is SessionState.ACTIVE:
            return Ok(record)

        logger.info(
            "Refresh token rejected",
            extra={"reason": state.value, "user_id": str(record.user_id) if record else None},
        )
        if state is SessionState.EXPIRED:
            self.session.delete(record)
            self.session.flush()
        return unauthorized("Invalid or expired refresh token")

    def revoke(self, token: str) -> int:
        """Mark the matching record revoked. Unknown or already revoked is a no-op."""
        result = self.session.execute(
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == hash_refresh_token(token),
                RefreshToken.revoked.is_(False),
            )
            .values(revoked=True)
        )
        return result.rowcount

    def revoke_all(self, user_id: UUID) -> int:
        """Revoke every outstanding refresh token owned by ``user_id``."""
        result = self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        logger.info(
            "Revoked all sessions", extra={"user_id": str(user_id), "count": result.rowcount}
        )
        return result.rowcount

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete rows that are expired or revoked. Maintenance only."""
        now = now or datetime.now(timezone.utc)
        result = self.session.execute(
            delete(RefreshToken).where(
                or_(RefreshToken.expires_at <= now, RefreshToken.revoked.is_(True))
            )
        )
        logger.info("Purged refresh tokens", extra={"count": result.rowcount})
        return result.rowcount
