"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Memory is bounded by :meth:`sweep`, which the app runs periodically.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _Window:
    window_seconds: float
    timestamps: deque[float] = field(default_factory=deque)

    def prune(self, now: float) -> None:
        # An entry exactly window_seconds old is already outside the window.
        while self.timestamps and now - self.timestamps[0] >= self.window_seconds:
            self.timestamps.popleft()


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping the timestamps of recent requests per key.

    Unlike a fixed window, the budget frees up gradually: a request is
    admitted when fewer than ``limit`` requests happened during the trailing
    ``window_seconds``. A rejected request is not recorded, so a client that
    keeps hammering is not locked out past the end of its window.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._windows: dict[str, _Window] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def check(self, key: str, *, limit: int, window_seconds: float) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            limit: Maximum requests within the trailing window.
            window_seconds: Size of the trailing window in seconds.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or limit/window are invalid.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        now = self._clock()

        with self._lock:
            window = self._windows.get(key)
            if window is None:
                window = _Window(window_seconds=window_seconds)
                self._windows[key] = window
            window.window_seconds = window_seconds
            window.prune(now)

            if len(window.timestamps) >= limit:
                reset_at = window.timestamps[0] + window_seconds
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
                )

            window.timestamps.append(now)
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - len(window.timestamps),
                reset_at=now + window_seconds,
                retry_after_seconds=None,
            )

    def sweep(self) -> int:
        """Remove keys with no request inside their window."""
        now = self._clock()
        removed = 0
        with self._lock:
            for key in list(self._windows):
                window = self._windows[key]
                window.prune(now)
                if not window.timestamps:
                    del self._windows[key]
                    removed += 1
        return removed

    def reset(self) -> None:
        """Forget every window."""
        with self._lock:
            self._windows.clear()
