"""Access token signing/verification and refresh token generation."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal
from uuid import UUID, uuid4

import jwt
from pydantic import BaseModel

from issue_tracker.config import Settings, get_settings
from issue_tracker.db.models.enums import Role

ALGORITHM = "HS256"


class TokenPayload(BaseModel):
    """Decoded access token claims."""

    user_id: UUID
    role: Role
    token_type: Literal["access"]
    issued_at: datetime
    expires_at: datetime


class AuthenticationError(Exception):
    """Authentication-related errors."""


class TokenExpiredError(AuthenticationError):
    """The token was well-formed and correctly signed but is past ``exp``."""


class InvalidTokenError(AuthenticationError):
    """Bad signature, wrong issuer/audience/type, or malformed claims."""


def create_access_token(
    user_id: UUID,
    role: Role,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> str:
    """Create a signed access token.

    Args:
        user_id: Subject of the token
        role: Role claim, checked again against the database on use
        now: Issue time override (tests)

    Returns:
        Encoded JWT string
    """
    settings = settings or get_settings()
    now = now or datetime.now(timezone.utc)
    expires = now + timedelta(minutes=settings.jwt_access_ttl_minutes)

    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "iat": now,
        "exp": expires,
        "jti": uuid4().hex,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def verify_access_token(token: str, settings: Settings | None = None) -> TokenPayload:
    """Verify and decode an access token.

    Raises:
        TokenExpiredError: If the token is past its expiry
        InvalidTokenError: For any other verification failure
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[ALGORITHM],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Access token has expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError("Invalid access token") from e

    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token type")

    try:
        return TokenPayload(
            user_id=UUID(payload["sub"]),
            role=Role(payload["role"]),
            token_type=payload["type"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, ValueError) as e:
        raise InvalidTokenError("Malformed token payload") from e


def create_refresh_token() -> str:
    """Generate an opaque, unguessable refresh token."""
    return secrets.token_urlsafe(48)


def hash_refresh_token(token: str) -> str:
    """SHA-256 digest stored in place of the raw refresh token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def refresh_token_expiry(settings: Settings | None = None, now: datetime | None = None) -> datetime:
    settings = settings or get_settings()
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=settings.jwt_refresh_ttl_days)


def access_token_expires_in(settings: Settings | None = None) -> int:
    """Access token lifetime in seconds."""
    settings = settings or get_settings()
    return settings.jwt_access_ttl_minutes * 60


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
