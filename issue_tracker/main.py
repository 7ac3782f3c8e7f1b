"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from issue_tracker.api.auth import router as auth_router
from issue_tracker.api.health import router as health_router
from issue_tracker.api.issues import router as issues_router
from issue_tracker.config import Settings, get_settings, validate_runtime_config
from issue_tracker.db.base import Database
from issue_tracker.db.integrity import classify_integrity_error
from issue_tracker.errors import ApiError, error_body
from issue_tracker.logging_config import configure_logging
from issue_tracker.rate_limit.core import InMemoryRateLimiter, RateLimiter, RedisRateLimiter
from issue_tracker.security.middleware import RateLimitMiddleware, SecurityHeadersMiddleware

logger = logging.getLogger(__name__)

API_NAME = "Logistics Delivery Issue Tracking API"


def _build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.rate_limit_backend == "redis":
        return RedisRateLimiter.from_url(settings.redis_url)
    return InMemoryRateLimiter()


def _validation_details(exc: RequestValidationError) -> list[dict[str, Any]]:
    details = []
    for err in exc.errors():
        # Drop the leading "body"/"query"/"path" location segment
        loc = [str(part) for part in err.get("loc", ())[1:]]
        details.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"error": ..., "details": ...}``."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.details),
            headers=exc.headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("Validation failed", _validation_details(exc)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            content = error_body(
                "Route not found",
                f"The endpoint {request.method} {request.url.path} does not exist",
            )
        else:
            content = error_body(str(exc.detail))
        return JSONResponse(
            status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        error = classify_integrity_error(exc)
        if error.kind.status_code >= 500:
            logger.error("Unhandled integrity error", exc_info=exc)
        return JSONResponse(
            status_code=error.kind.status_code,
            content=error_body(error.message, error.details),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Server error",
            exc_info=exc,
            extra={"method": request.method, "path": request.url.path},
        )
        settings: Settings = request.app.state.settings
        details = str(exc) if settings.is_development else None
        return JSONResponse(
            status_code=500, content=error_body("Internal server error", details)
        )


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings (defaults to the environment)
        database: Pre-built database handle (defaults to one built from settings)
        rate_limiter: Limiter backend (defaults per ``rate_limit_backend``)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    validate_runtime_config(settings)
    configure_logging(settings.log_level)

    database = database or Database.from_settings(settings)
    rate_limiter = rate_limiter or _build_rate_limiter(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Application starting up",
            extra={"environment": settings.app_env, "version": settings.app_version},
        )
        if settings.auto_create_schema:
            database.create_schema()
        yield
        logger.info("Application shutting down")
        database.dispose()

    app = FastAPI(
        title=API_NAME,
        description="Track damaged, lost and late deliveries",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.rate_limiter = rate_limiter

    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware, settings=settings, limiter=rate_limiter)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    # Versioned routes, plus an equivalent root-level alias
    for router in (auth_router, issues_router):
        app.include_router(router, prefix=settings.api_prefix)
        app.include_router(router, include_in_schema=False)

    @app.get("/", include_in_schema=False)
    def root() -> dict[str, Any]:
        return {
            "name": API_NAME,
            "version": settings.app_version,
            "health": "/health",
            "endpoints": {
                "auth": f"{settings.api_prefix}/auth",
                "issues": f"{settings.api_prefix}/issues",
            },
        }

    return app


# Create app instance for uvicorn
app = create_app()
