"""GitHub API rate limit tracking and failure circuit breaker."""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field

from .exceptions import GitHubRateLimitError


@dataclass
class RateLimitInfo:
    """Rate limit information from GitHub API."""

    limit: int
    remaining: int
    reset: int
    used: int = 0
    resource: str = "core"

    @property
    def seconds_until_reset(self) -> float:
        """Get seconds until rate limit resets."""
        return max(0, self.reset - time.time())

    @property
    def is_exceeded(self) -> bool:
        """Check if rate limit is exceeded."""
        return self.remaining <= 0


@dataclass
class RateLimitManager:
    """Tracks ``X-RateLimit-*`` headers and refuses requests inside the buffer."""

    buffer: int = 100  # Calls kept in reserve
    max_retry_wait: int = 3600

    _rate_limits: dict[str, RateLimitInfo] = field(default_factory=dict)

    def get_rate_limit(self, resource: str = "core") -> RateLimitInfo | None:
        """Get current rate limit info for resource."""
        return self._rate_limits.get(resource)

    def update_rate_limit(self, headers: Mapping[str, str]) -> None:
        """Update rate limit info from response headers.

        Args:
            headers: HTTP response headers from GitHub API
        """
        if "X-RateLimit-Limit" not in headers:
            return

        try:
            rate_limit = RateLimitInfo(
                limit=int(headers.get("X-RateLimit-Limit", 5000)),
                remaining=int(headers.get("X-RateLimit-Remaining", 0)),
                reset=int(headers.get("X-RateLimit-Reset", 0)),
                used=int(headers.get("X-RateLimit-Used", 0)),
                resource=headers.get("X-RateLimit-Resource", "core"),
            )
        except (ValueError, TypeError):
            return
        self._rate_limits[rate_limit.resource] = rate_limit

    def check_rate_limit(self, resource: str = "core") -> None:
        """Check if rate limit allows request.

        Args:
            resource: GitHub API resource type

        Raises:
            GitHubRateLimitError: If remaining calls are within the buffer
        """
        rate_limit = self.get_rate_limit(resource)
        if not rate_limit:
            return

        if rate_limit.remaining <= self.buffer and rate_limit.seconds_until_reset > 0:
            wait_time = min(rate_limit.seconds_until_reset, self.max_retry_wait)
            raise GitHubRateLimitError(
                f"Rate limit approaching for {resource}. "
                f"Remaining: {rate_limit.remaining}, "
                f"Reset in {wait_time:.0f} seconds",
                reset_time=rate_limit.reset,
                remaining=rate_limit.remaining,
                limit=rate_limit.limit,
            )


class CircuitBreaker:
    """Circuit breaker for GitHub API transport failures."""

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        """Initialize circuit breaker.

        Args:
            failure_threshold: Number of failures before opening circuit
            recovery_timeout: Seconds to wait before attempting recovery
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self._failure_count = 0
        self._last_failure_time: float | None = None
        self._state = "closed"  # closed, open, half_open

    @property
    def is_open(self) -> bool:
        """Check if circuit is open."""
        return self._state == "open"

    @property
    def is_closed(self) -> bool:
        """Check if circuit is closed."""
        return self._state == "closed"

    def record_success(self) -> None:
        """Record successful call."""
        self._failure_count = 0
        self._state = "closed"

    def record_failure(self) -> None:
        """Record failed call."""
        self._failure_count += 1
        self._last_failure_time = time.time()

        if self._failure_count >= self.failure_threshold:
            self._state = "open"

    def can_attempt_request(self) -> bool:
        """Check if request can be attempted."""
        if self.is_closed:
            return True

        if (
            self.is_open
            and self._last_failure_time
            and time.time() - self._last_failure_time >= self.recovery_timeout
        ):
            self._state = "half_open"
            return True

        return self._state == "half_open"

    def get_wait_time(self) -> float:
        """Get time to wait before next attempt."""
        if not self.is_open or not self._last_failure_time:
            return 0

        elapsed = time.time() - self._last_failure_time
        return max(0, self.recovery_timeout - elapsed)
