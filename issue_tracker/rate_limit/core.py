"""Core rate limiting logic."""

import logging
import threading
import time
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import uuid4

import redis

from issue_tracker.rate_limit.types import RateLimitResult

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    """Protocol for rate limiting implementations."""

    def check_and_consume(
        self,
        key: str,
        bucket: str,
        limit: int,
        window: timedelta,
    ) -> RateLimitResult:
        """Check rate limit and consume a slot if allowed.

        Args:
            key: Client identifier (user id or IP address).
            bucket: Route class name (e.g., "auth", "create", "general").
            limit: Maximum number of requests allowed in the window.
            window: Length of the sliding window.

        Returns:
            RateLimitResult indicating if the request is allowed.
        """
        ...


class InMemoryRateLimiter:
    """In-memory rate limiter using sliding window algorithm.

    State lives in the process, so limits are per worker. Use
    RedisRateLimiter when running several workers.
    """

    def __init__(self, sweep_interval: timedelta = timedelta(minutes=1)) -> None:
        # Structure: {(key, bucket): [expiry_time, ...]}
        self._requests: dict[tuple[str, str], list[datetime]] = {}
        self._lock = threading.Lock()
        self._sweep_interval = sweep_interval
        self._next_sweep = datetime.now(UTC) + sweep_interval

    def tracked_slots(self) -> int:
        """Number of (key, bucket) slots currently held in memory."""
        with self._lock:
            return len(self._requests)

    def check_and_consume(
        self,
        key: str,
        bucket: str,
        limit: int,
        window: timedelta,
    ) -> RateLimitResult:
        now = datetime.now(UTC)
        slot = (key, bucket)

        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)

            # Drop requests that slid out of the window
            active = [exp for exp in self._requests.get(slot, []) if exp > now]

            if len(active) < limit:
                active.append(now + window)
                self._requests[slot] = active
                return RateLimitResult(
                    allowed=True,
                    remaining=limit - len(active),
                    reset_at=min(active),
                )

            if not active:
                # limit <= 0: nothing to remember
                self._requests.pop(slot, None)
                return RateLimitResult(allowed=False, remaining=0, reset_at=now + window)

            self._requests[slot] = active
            return RateLimitResult(allowed=False, remaining=0, reset_at=min(active))

    def _sweep(self, now: datetime) -> None:
        """Forget slots whose every entry has expired. Caller holds the lock."""
        stale = [
            slot for slot, entries in self._requests.items() if all(exp <= now for exp in entries)
        ]
        for slot in stale:
            del self._requests[slot]
        self._next_sweep = now + self._sweep_interval
        if stale:
            logger.debug("Dropped idle rate limit slots", extra={"count": len(stale)})

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()


class RedisRateLimiter:
    """Sliding window log kept in a Redis sorted set per (key, bucket).

    Redis failures fail open: the request is allowed and a warning logged.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimiter":
        return cls(redis.from_url(url, decode_responses=True))

    def check_and_consume(
        self,
        key: str,
        bucket: str,
        limit: int,
        window: timedelta,
    ) -> RateLimitResult:
        redis_key = f"rate_limit:{bucket}:{key}"
        now = time.time()
        window_s = window.total_seconds()

        try:
            pipe = self._client.pipeline()
            pipe.zremrangebyscore(redis_key, 0, now - window_s)
            pipe.zcard(redis_key)
            pipe.zrange(redis_key, 0, 0, withscores=True)
            _, count, oldest = pipe.execute()

            count = int(count)
            if count >= limit:
                oldest_ts = oldest[0][1] if oldest else now
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=datetime.fromtimestamp(oldest_ts + window_s, tz=UTC),
                )

            pipe = self._client.pipeline()
            pipe.zadd(redis_key, {f"{now}:{uuid4().hex}": now})
            pipe.expire(redis_key, int(window_s) + 1)
            pipe.execute()

            oldest_ts = oldest[0][1] if oldest else now
            return RateLimitResult(
                allowed=True,
                remaining=limit - count - 1,
                reset_at=datetime.fromtimestamp(oldest_ts + window_s, tz=UTC),
            )
        except redis.RedisError as e:
            logger.warning(
                "Rate limiting backend unavailable, allowing request",
                extra={"bucket": bucket, "error": str(e)},
            )
            return RateLimitResult(
                allowed=True,
                remaining=limit,
                reset_at=datetime.now(UTC) + window,
            )

    def ping(self) -> bool:
        return bool(self._client.ping())
