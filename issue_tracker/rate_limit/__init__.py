"""Sliding-window rate limiting."""

from .core import InMemoryRateLimiter, RateLimiter, RedisRateLimiter
from .types import RateLimitResult, RateLimitRule, RouteClass

__all__ = [
    "InMemoryRateLimiter",
    "RateLimiter",
    "RedisRateLimiter",
    "RateLimitResult",
    "RateLimitRule",
    "RouteClass",
]
