"""Security middleware for headers and rate limiting."""

import logging
from collections.abc import Callable
from datetime import timedelta

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from issue_tracker.config import Settings
from issue_tracker.errors import error_body
from issue_tracker.rate_limit.core import RateLimiter
from issue_tracker.rate_limit.types import RateLimitRule, RouteClass
from issue_tracker.security.jwt import AuthenticationError, extract_bearer_token, verify_access_token

logger = logging.getLogger(__name__)

AUTH_PATHS = frozenset({"/auth/register", "/auth/login", "/auth/refresh"})
EXEMPT_PATHS = frozenset({"/health"})


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "same-origin"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"

        csp_directives = [
            "default-src 'self'",
            "style-src 'self' 'unsafe-inline'",
            "script-src 'self'",
            "img-src 'self' data: https:",
        ]
        response.headers["Content-Security-Policy"] = "; ".join(csp_directives)

        # HSTS (only in production)
        if self.settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


def rate_limit_rules(settings: Settings) -> dict[RouteClass, RateLimitRule]:
    return {
        RouteClass.AUTH: RateLimitRule(
            limit=settings.rate_limit_auth,
            window=timedelta(seconds=settings.rate_limit_auth_window_s),
        ),
        RouteClass.CREATE: RateLimitRule(
            limit=settings.rate_limit_create,
            window=timedelta(seconds=settings.rate_limit_create_window_s),
        ),
        RouteClass.GENERAL: RateLimitRule(
            limit=settings.general_rate_limit,
            window=timedelta(seconds=settings.rate_limit_general_window_s),
        ),
    }


def classify_route(method: str, path: str, api_prefix: str = "") -> list[RouteClass]:
    """Route classes a request counts against, most specific first.

    An empty list means the route is exempt.
    """
    if api_prefix and path.startswith(api_prefix):
        path = path[len(api_prefix) :] or "/"
    path = path.rstrip("/") or "/"

    if path in EXEMPT_PATHS:
        return []
    if path in AUTH_PATHS:
        return [RouteClass.AUTH, RouteClass.GENERAL]
    if method == "POST" and path == "/issues":
        return [RouteClass.CREATE, RouteClass.GENERAL]
    return [RouteClass.GENERAL]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiting per client and route class."""

    def __init__(self, app, settings: Settings, limiter: RateLimiter):
        super().__init__(app)
        self.settings = settings
        self.limiter = limiter
        self.rules = rate_limit_rules(settings)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Check rate limits and continue or return 429."""
        classes = classify_route(request.method, request.url.path, self.settings.api_prefix)
        if not classes:
            return await call_next(request)

        client_key = self._client_key(request)
        for route_class in classes:
            rule = self.rules[route_class]
            result = self.limiter.check_and_consume(
                client_key, route_class.value, rule.limit, rule.window
            )
            if not result.allowed:
                retry_after = result.retry_after_seconds
                logger.warning(
                    "Rate limit exceeded",
                    extra={"bucket": route_class.value, "client": client_key},
                )
                return JSONResponse(
                    status_code=429,
                    content=error_body(
                        "Rate limit exceeded",
                        f"Maximum of {rule.limit} requests per "
                        f"{int(rule.window.total_seconds())} seconds allowed. "
                        "Please try again later.",
                    ),
                    headers={"Retry-After": str(retry_after)},
                )

        return await call_next(request)

    def _client_key(self, request: Request) -> str:
        """Prefer the authenticated user id, fall back to the client IP."""
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token:
            try:
                payload = verify_access_token(token, self.settings)
                return f"user:{payload.user_id}"
            except AuthenticationError:
                pass
        return f"ip:{self._client_ip(request)}"

    @staticmethod
    def _client_ip(request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
