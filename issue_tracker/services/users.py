"""Account registration, login and token issuance."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from issue_tracker.config import Settings
from issue_tracker.db.integrity import classify_integrity_error
from issue_tracker.db.models.enums import Role
from issue_tracker.db.models.user import User
from issue_tracker.errors import Err, Ok, Result, conflict, unauthorized, validation_error
from issue_tracker.security.jwt import (
    access_token_expires_in,
    create_access_token,
    create_refresh_token,
    refresh_token_expiry,
)
from issue_tracker.security.passwords import (
    check_password_strength,
    hash_password,
    needs_rehash,
    verify_password,
)
from issue_tracker.services.sessions import SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedTokens:
    user: User
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class RefreshedAccess:
    access_token: str
    expires_in: int


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Registration, credential checks and the token pair lifecycle."""

    def __init__(self, session: Session, settings: Settings) -> None:
        self.session = session
        self.settings = settings
        self.sessions = SessionStore(session)

    def get(self, user_id: UUID) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.execute(
            select(User).where(User.email == normalize_email(email))
        ).scalar_one_or_none()

    def register(
        self, email: str, password: str, name: str, role: Role = Role.CUSTOMER
    ) -> Result[IssuedTokens]:
        problems = check_password_strength(password)
        if problems:
            return validation_error("Password does not meet requirements", {"errors": problems})

        email = normalize_email(email)
        if self.get_by_email(email) is not None:
            return conflict(f"User with email {email} already exists")

        user = User(
            email=email,
            password_hash=hash_password(password, self.settings),
            name=name.strip(),
            role=role,
        )
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            self.session.rollback()
            return Err(classify_integrity_error(e))

        logger.info("User registered", extra={"user_id": str(user.id), "role": role.value})
        return Ok(self._issue_tokens(user))

    def login(self, email: str, password: str) -> Result[IssuedTokens]:
        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash, self.settings):
            logger.info("Login failed", extra={"email": normalize_email(email)})
            return unauthorized("Invalid email or password")

        if needs_rehash(user.password_hash, self.settings):
            user.password_hash = hash_password(password, self.settings)

        return Ok(self._issue_tokens(user))

    def refresh(self, refresh_token: str) -> Result[RefreshedAccess]:
        """Exchange a live refresh token for a new access token.

        The refresh token itself is not rotated.
        """
        validated = self.sessions.validate(refresh_token)
        if isinstance(validated, Err):
            return validated

        user = self.get(validated.value.user_id)
        if user is None:
            return unauthorized("User not found")

        return Ok(
            RefreshedAccess(
                access_token=create_access_token(user.id, user.role, self.settings),
                expires_in=access_token_expires_in(self.settings),
            )
        )

    def logout(self, refresh_token: str) -> None:
        self.sessions.revoke(refresh_token)

    def logout_all(self, user_id: UUID) -> int:
        return self.sessions.revoke_all(user_id)

    def _issue_tokens(self, user: User) -> IssuedTokens:
        now = datetime.now(timezone.utc)
        refresh_token = create_refresh_token()
        self.sessions.create(user.id, refresh_token, refresh_token_expiry(self.settings, now))
        return IssuedTokens(
            user=user,
            access_token=create_access_token(user.id, user.role, self.settings, now),
            refresh_token=refresh_token,
            expires_in=access_token_expires_in(self.settings),
        )
