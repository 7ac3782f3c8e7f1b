"""Tests for rate limiter implementations."""

import time
from datetime import UTC, datetime, timedelta
from time import sleep
from unittest.mock import MagicMock

import pytest
import redis

from issue_tracker.rate_limit.core import InMemoryRateLimiter, RedisRateLimiter
from issue_tracker.rate_limit.types import RateLimitResult


@pytest.mark.unit
class TestInMemoryRateLimiter:
    """Tests for InMemoryRateLimiter."""

    def test_allows_requests_within_limit(self):
        """Test that requests within limit are allowed."""
        limiter = InMemoryRateLimiter()
        limit = 3
        window = timedelta(seconds=60)

        # First 3 requests should be allowed
        for i in range(3):
            result = limiter.check_and_consume("ip:1.2.3.4", "auth", limit, window)
            assert result.allowed is True
            assert result.remaining == 2 - i

    def test_denies_request_exceeding_limit(self):
        """Test that requests exceeding limit are denied."""
        limiter = InMemoryRateLimiter()
        window = timedelta(seconds=60)

        for _ in range(3):
            assert limiter.check_and_consume("ip:1.2.3.4", "auth", 3, window).allowed

        # 4th request should be denied
        result = limiter.check_and_consume("ip:1.2.3.4", "auth", 3, window)
        assert result.allowed is False
        assert result.remaining == 0
        assert 1 <= result.retry_after_seconds <= 60

    def test_window_reset_allows_new_requests(self):
        """Test that requests are allowed after window expires."""
        limiter = InMemoryRateLimiter()
        window = timedelta(seconds=1)  # 1 second window

        # Use up the limit
        assert limiter.check_and_consume("k", "general", 2, window).allowed
        assert limiter.check_and_consume("k", "general", 2, window).allowed
        assert not limiter.check_and_consume("k", "general", 2, window).allowed

        # Wait for window to expire
        sleep(1.1)

        result = limiter.check_and_consume("k", "general", 2, window)
        assert result.allowed is True
        assert result.remaining == 1

    def test_keys_and_buckets_are_independent(self):
        limiter = InMemoryRateLimiter()
        window = timedelta(seconds=60)

        assert limiter.check_and_consume("user:a", "auth", 1, window).allowed
        assert not limiter.check_and_consume("user:a", "auth", 1, window).allowed

        assert limiter.check_and_consume("user:b", "auth", 1, window).allowed
        assert limiter.check_and_consume("user:a", "create", 1, window).allowed

    def test_reset_clears_state(self):
        limiter = InMemoryRateLimiter()
        window = timedelta(seconds=60)
        limiter.check_and_consume("k", "auth", 1, window)

        limiter.reset()

        assert limiter.check_and_consume("k", "auth", 1, window).allowed

    def test_idle_slots_are_dropped_after_their_window(self):
        limiter = InMemoryRateLimiter(sweep_interval=timedelta(0))
        window = timedelta(milliseconds=200)
        for n in range(5):
            assert limiter.check_and_consume(f"ip:10.0.0.{n}", "general", 5, window).allowed
        assert limiter.tracked_slots() == 5

        sleep(0.3)
        limiter.check_and_consume("ip:10.0.0.99", "general", 5, window)

        assert limiter.tracked_slots() == 1

    def test_zero_limit_leaves_no_slot_behind(self):
        limiter = InMemoryRateLimiter()

        result = limiter.check_and_consume("k", "auth", 0, timedelta(seconds=60))

        assert result.allowed is False
        assert limiter.tracked_slots() == 0


def _mock_redis(count: int, oldest: list) -> MagicMock:
    client = MagicMock()
    read_pipe = MagicMock()
    read_pipe.execute.return_value = [0, count, oldest]
    write_pipe = MagicMock()
    client.pipeline.side_effect = [read_pipe, write_pipe]
    client.write_pipe = write_pipe
    return client


@pytest.mark.unit
class TestRedisRateLimiter:
    """Tests for the sorted-set limiter against a mocked client."""

    def test_allows_and_records_request(self):
        client = _mock_redis(count=2, oldest=[("a", time.time() - 10)])
        limiter = RedisRateLimiter(client)

        result = limiter.check_and_consume("user:1", "create", 5, timedelta(hours=1))

        assert result.allowed is True
        assert result.remaining == 2
        client.write_pipe.zadd.assert_called_once()
        args, _ = client.write_pipe.expire.call_args
        assert args == ("rate_limit:create:user:1", 3601)

    def test_denies_when_window_full(self):
        oldest_ts = time.time() - 100
        client = _mock_redis(count=5, oldest=[("a", oldest_ts)])
        limiter = RedisRateLimiter(client)

        result = limiter.check_and_consume("user:1", "create", 5, timedelta(seconds=300))

        assert result.allowed is False
        assert result.remaining == 0
        assert result.reset_at == datetime.fromtimestamp(oldest_ts + 300, tz=UTC)
        client.write_pipe.zadd.assert_not_called()

    def test_fails_open_on_redis_error(self):
        client = MagicMock()
        client.pipeline.return_value.execute.side_effect = redis.ConnectionError("down")
        limiter = RedisRateLimiter(client)

        result = limiter.check_and_consume("ip:1.1.1.1", "auth", 10, timedelta(minutes=15))

        assert result.allowed is True
        assert result.remaining == 10


@pytest.mark.unit
def test_retry_after_is_at_least_one_second():
    result = RateLimitResult(allowed=False, remaining=0, reset_at=datetime.now(UTC))
    assert result.retry_after_seconds == 1
