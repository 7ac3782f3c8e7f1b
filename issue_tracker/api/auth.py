"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from issue_tracker.api.deps import (
    CurrentUser,
    get_current_user,
    get_db_session,
    get_settings_dep,
)
from issue_tracker.api.schemas import (
    AccessTokenResponse,
    AuthResponse,
    LoginRequest,
    LogoutAllResponse,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    UserPublic,
)
from issue_tracker.config import Settings
from issue_tracker.errors import ApiError, ErrorKind, unwrap
from issue_tracker.services.users import IssuedTokens, UserService

router = APIRouter(prefix="/auth", tags=["authentication"])


def _auth_response(tokens: IssuedTokens) -> AuthResponse:
    return AuthResponse(
        user=UserPublic.from_user(tokens.user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> AuthResponse:
    """Create an account and sign it in.

    Raises:
        ApiError: 409 if the email is taken, 400 if the password is weak
    """
    service = UserService(session, settings)
    tokens = unwrap(
        service.register(request.email, request.password, request.name, request.role)
    )
    session.commit()
    return _auth_response(tokens)


@router.post("/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> AuthResponse:
    """Authenticate with email and password and return a fresh token pair."""
    service = UserService(session, settings)
    tokens = unwrap(service.login(request.email, request.password))
    session.commit()
    return _auth_response(tokens)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh(
    request: RefreshRequest,
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> AccessTokenResponse:
    """Issue a new access token. The refresh token stays valid until it expires."""
    service = UserService(session, settings)
    result = service.refresh(request.refresh_token)
    # Expired tokens are deleted even though the request is rejected
    session.commit()
    access = unwrap(result)
    return AccessTokenResponse(access_token=access.access_token, expires_in=access.expires_in)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: RefreshRequest,
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> MessageResponse:
    """Revoke one refresh token. Succeeds even if it was unknown or already revoked."""
    UserService(session, settings).logout(request.refresh_token)
    session.commit()
    return MessageResponse(message="Successfully logged out")


@router.post("/logout-all", response_model=LogoutAllResponse)
def logout_all(
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> LogoutAllResponse:
    """Revoke every refresh token belonging to the caller."""
    revoked = UserService(session, settings).logout_all(current_user.user_id)
    session.commit()
    return LogoutAllResponse(message="Successfully logged out from all devices", revoked=revoked)


@router.get("/me", response_model=MeResponse)
def me(
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> MeResponse:
    user = UserService(session, settings).get(current_user.user_id)
    if user is None:
        raise ApiError(ErrorKind.NOT_FOUND, "Resource not found", "User not found")
    return MeResponse(user=UserPublic.from_user(user))
