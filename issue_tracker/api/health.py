"""Health check endpoint for infrastructure status."""

import logging
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel

from issue_tracker.config import Settings
from issue_tracker.db.base import Database
from issue_tracker.rate_limit.core import RedisRateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["ok", "down"]
    timestamp: str
    environment: str
    version: str
    checks: dict[str, Literal["ok", "down"]]


def get_health(settings: Settings, db: Database, limiter: object | None = None) -> HealthStatus:
    """
    Check health of core infrastructure components.

    Checks:
    - Database: Attempts to execute SELECT 1
    - Redis: Attempts to PING, only when it backs the rate limiter

    Returns:
        HealthStatus with overall status and individual check results
    """
    checks: dict[str, Literal["ok", "down"]] = {}

    try:
        db.ping()
        checks["db"] = "ok"
    except Exception:
        logger.exception("Database health check failed")
        checks["db"] = "down"

    if isinstance(limiter, RedisRateLimiter):
        try:
            limiter.ping()
            checks["redis"] = "ok"
        except Exception:
            logger.exception("Redis health check failed")
            checks["redis"] = "down"

    # Overall status - down if any check is down
    overall_status: Literal["ok", "down"] = (
        "ok" if all(status == "ok" for status in checks.values()) else "down"
    )

    return HealthStatus(
        status=overall_status,
        timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        environment=settings.app_env,
        version=settings.app_version,
        checks=checks,
    )


@router.get("/health", response_model=HealthStatus)
def health(request: Request) -> HealthStatus:
    """Unauthenticated liveness/readiness probe. Never rate limited."""
    state = request.app.state
    return get_health(state.settings, state.db, getattr(state, "rate_limiter", None))
