"""Security utilities for authentication and authorization."""

from .jwt import (
    AuthenticationError,
    InvalidTokenError,
    TokenExpiredError,
    TokenPayload,
    access_token_expires_in,
    create_access_token,
    create_refresh_token,
    extract_bearer_token,
    hash_refresh_token,
    refresh_token_expiry,
    verify_access_token,
)
from .middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from .passwords import check_password_strength, hash_password, needs_rehash, verify_password

__all__ = [
    "AuthenticationError",
    "InvalidTokenError",
    "TokenExpiredError",
    "TokenPayload",
    "access_token_expires_in",
    "create_access_token",
    "create_refresh_token",
    "extract_bearer_token",
    "hash_refresh_token",
    "refresh_token_expiry",
    "verify_access_token",
    "check_password_strength",
    "hash_password",
    "needs_rehash",
    "verify_password",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
