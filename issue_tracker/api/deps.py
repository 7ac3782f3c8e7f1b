"""Request-scoped dependencies: database session, settings and caller identity."""

import logging
from collections.abc import Callable, Generator
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from issue_tracker.config import Settings
from issue_tracker.db.base import Database
from issue_tracker.db.models.enums import Role
from issue_tracker.db.models.user import User
from issue_tracker.errors import ApiError, ErrorKind
from issue_tracker.security.jwt import AuthenticationError, verify_access_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 in our envelope
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Current authenticated user context."""

    user_id: UUID
    email: str
    name: str
    role: Role


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_db_session(db: Database = Depends(get_database)) -> Generator[Session, None, None]:
    """Dependency to get a database session. Handlers commit their own writes."""
    session = db.session_factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _unauthorized(error: str, details: str) -> ApiError:
    return ApiError(
        ErrorKind.UNAUTHORIZED, error, details, headers={"WWW-Authenticate": "Bearer"}
    )


def _resolve_user(token: str, session: Session, settings: Settings) -> CurrentUser:
    try:
        payload = verify_access_token(token, settings)
    except AuthenticationError as e:
        raise _unauthorized("Authentication failed", str(e)) from e

    user = session.get(User, payload.user_id)
    if user is None:
        raise _unauthorized("Authentication failed", "User not found")

    # Role comes from the database, not the token, so demotions apply at once
    return CurrentUser(user_id=user.id, email=user.email, name=user.name, role=user.role)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> CurrentUser:
    """Get current authenticated user from the bearer access token.

    Raises:
        ApiError: 401 if the token is missing, invalid, expired, or its user is gone
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Authentication required", "No access token provided")
    return _resolve_user(credentials.credentials, session, settings)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> CurrentUser | None:
    """Like get_current_user, but returns None instead of failing."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _resolve_user(credentials.credentials, session, settings)
    except ApiError:
        return None


def require_permission(
    check: Callable[[Role], bool], details: str
) -> Callable[..., CurrentUser]:
    """Dependency factory gating a route on a role predicate.

    An authenticated caller failing the check gets 403, never 401.
    """

    def dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not check(current_user.role):
            logger.info(
                "Role check failed",
                extra={"user_id": str(current_user.user_id), "role": current_user.role.value},
            )
            raise ApiError(ErrorKind.FORBIDDEN, "Insufficient permissions", details)
        return current_user

    return dependency


def require_roles(*roles: Role) -> Callable[..., CurrentUser]:
    """Gate a route to an allow-list of roles."""
    allowed = frozenset(roles)
    return require_permission(
        lambda role: role in allowed,
        f"Required roles: {', '.join(sorted(r.value for r in allowed))}",
    )
