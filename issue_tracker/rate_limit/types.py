"""Rate limiting types."""

import math
from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field


class RouteClass(str, Enum):
    """Independent rate limit buckets."""

    GENERAL = "general"
    AUTH = "auth"
    CREATE = "create"


class RateLimitRule(BaseModel):
    """Requests allowed per sliding window."""

    limit: int = Field(ge=1)
    window: timedelta


class RateLimitResult(BaseModel):
    """Result of a rate limit check."""

    allowed: bool = Field(description="Whether the request is allowed")
    remaining: int = Field(description="Number of requests remaining in window")
    reset_at: datetime = Field(description="When the oldest counted request expires")

    @property
    def retry_after_seconds(self) -> int:
        return max(1, math.ceil((self.reset_at - datetime.now(UTC)).total_seconds()))
