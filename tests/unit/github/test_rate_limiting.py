"""
Unit tests for rate limit tracking and the circuit breaker.

Why: Dispatching many pull requests concurrently must stop before the
     token's rate limit is exhausted, and must stop hammering an API that
     keeps failing.

What: Tests RateLimitManager header parsing and buffer enforcement, and the
      CircuitBreaker state transitions.

How: Feeds headers and failures directly and patches time where needed.
"""

import time
from unittest.mock import patch

import pytest

from pr_retrigger.github.exceptions import GitHubRateLimitError
from pr_retrigger.github.rate_limiting import (
    CircuitBreaker,
    RateLimitInfo,
    RateLimitManager,
)


def _headers(remaining: int, reset: int, resource: str = "core") -> dict[str, str]:
    return {
        "X-RateLimit-Limit": "5000",
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset),
        "X-RateLimit-Used": str(5000 - remaining),
        "X-RateLimit-Resource": resource,
    }


class TestRateLimitInfo:
    def test_seconds_until_reset(self) -> None:
        info = RateLimitInfo(limit=5000, remaining=0, reset=int(time.time()) + 60)

        assert 0 < info.seconds_until_reset <= 60
        assert info.is_exceeded

    def test_reset_in_past(self) -> None:
        info = RateLimitInfo(limit=5000, remaining=10, reset=0)

        assert info.seconds_until_reset == 0
        assert not info.is_exceeded


class TestRateLimitManager:
    def test_update_from_headers(self) -> None:
        manager = RateLimitManager()

        manager.update_rate_limit(_headers(4000, 1700000000))

        info = manager.get_rate_limit()
        assert info is not None
        assert info.remaining == 4000
        assert info.used == 1000

    def test_resources_tracked_separately(self) -> None:
        manager = RateLimitManager()

        manager.update_rate_limit(_headers(20, 1700000000, resource="search"))

        assert manager.get_rate_limit("core") is None
        assert manager.get_rate_limit("search").remaining == 20

    @pytest.mark.parametrize(
        "headers",
        [{}, {"X-RateLimit-Limit": "5000", "X-RateLimit-Remaining": "many"}],
    )
    def test_ignores_missing_or_malformed_headers(self, headers) -> None:
        manager = RateLimitManager()

        manager.update_rate_limit(headers)

        assert manager.get_rate_limit() is None

    def test_check_passes_outside_buffer(self) -> None:
        manager = RateLimitManager(buffer=100)
        manager.update_rate_limit(_headers(101, int(time.time()) + 600))

        manager.check_rate_limit()

    def test_check_raises_inside_buffer(self) -> None:
        manager = RateLimitManager(buffer=100)
        manager.update_rate_limit(_headers(100, int(time.time()) + 600))

        with pytest.raises(GitHubRateLimitError) as exc_info:
            manager.check_rate_limit()

        assert exc_info.value.remaining == 100
        assert exc_info.value.limit == 5000

    def test_check_passes_after_reset(self) -> None:
        manager = RateLimitManager(buffer=100)
        manager.update_rate_limit(_headers(0, int(time.time()) - 1))

        manager.check_rate_limit()


class TestCircuitBreaker:
    def test_opens_after_threshold(self) -> None:
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=60)

        for _ in range(2):
            breaker.record_failure()
        assert breaker.can_attempt_request()

        breaker.record_failure()

        assert breaker.is_open
        assert not breaker.can_attempt_request()
        assert 0 < breaker.get_wait_time() <= 60

    def test_half_open_after_recovery_timeout(self) -> None:
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=30)
        breaker.record_failure()

        with patch(
            "pr_retrigger.github.rate_limiting.time.time",
            return_value=time.time() + 31,
        ):
            assert breaker.can_attempt_request()

        assert not breaker.is_open
        assert not breaker.is_closed

    def test_success_closes_circuit(self) -> None:
        breaker = CircuitBreaker(failure_threshold=1)
        breaker.record_failure()

        breaker.record_success()

        assert breaker.is_closed
        assert breaker.get_wait_time() == 0
