"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
Limits are passed per call because different endpoints budget the same
client identity differently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds at which the budget frees up again.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None

    @property
    def reset_at_iso(self) -> str:
        """``reset_at`` rendered as an ISO-8601 UTC timestamp."""
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc).isoformat()


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str, *, limit: int, window_seconds: float) -> RateLimitResult:
        """Record one request for ``key`` if it fits the budget.

        Args:
            key: Unique identifier (e.g., client IP, API key).
            limit: Maximum requests allowed within the window.
            window_seconds: Size of the trailing window.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Drop identities whose whole window has gone stale.

        Returns:
            Number of identities removed.
        """
        raise NotImplementedError
