"""Unit tests for in-memory rate limiter adapter."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    assert limiter.check("k", limit=3, window_seconds=60).remaining == 2
    assert limiter.check("k", limit=3, window_seconds=60).remaining == 1
    result = limiter.check("k", limit=3, window_seconds=60)
    assert result.allowed is True
    assert result.remaining == 0
    assert result.reset_at == 1060.0


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    limiter.check("k", limit=2, window_seconds=60)
    clock.return_value = 1010.0
    limiter.check("k", limit=2, window_seconds=60)

    clock.return_value = 1020.0
    blocked = limiter.check("k", limit=2, window_seconds=60)
    assert blocked.allowed is False
    assert blocked.remaining == 0
    # Oldest retained request + window
    assert blocked.reset_at == 1060.0
    assert blocked.retry_after_seconds == 40


def test_window_slides_instead_of_resetting() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    limiter.check("k", limit=2, window_seconds=10)
    clock.return_value = 1005.0
    limiter.check("k", limit=2, window_seconds=10)
    assert limiter.check("k", limit=2, window_seconds=10).allowed is False

    # First request has aged out, second is still inside the window
    clock.return_value = 1010.0
    assert limiter.check("k", limit=2, window_seconds=10).allowed is True
    assert limiter.check("k", limit=2, window_seconds=10).allowed is False


def test_rejected_requests_are_not_recorded() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    limiter.check("k", limit=1, window_seconds=10)
    for _ in range(5):
        clock.return_value += 1
        assert limiter.check("k", limit=1, window_seconds=10).allowed is False

    clock.return_value = 1010.0
    assert limiter.check("k", limit=1, window_seconds=10).allowed is True


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    assert limiter.check("k1", limit=1, window_seconds=60).allowed is True
    assert limiter.check("k1", limit=1, window_seconds=60).allowed is False

    assert limiter.check("k2", limit=1, window_seconds=60).allowed is True


def test_same_identity_with_different_budgets() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    for _ in range(3):
        assert limiter.check("write:ip:1.2.3.4", limit=3, window_seconds=60).allowed is True
    assert limiter.check("write:ip:1.2.3.4", limit=3, window_seconds=60).allowed is False
    assert limiter.check("read:ip:1.2.3.4", limit=100, window_seconds=60).allowed is True


def test_sweep_drops_only_stale_identities() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    limiter.check("old", limit=5, window_seconds=10)
    clock.return_value = 1008.0
    limiter.check("fresh", limit=5, window_seconds=10)

    clock.return_value = 1012.0
    assert limiter.sweep() == 1
    assert len(limiter) == 1

    clock.return_value = 1030.0
    assert limiter.sweep() == 1
    assert len(limiter) == 0


def test_reset_at_iso_is_utc() -> None:
    limiter = InMemorySlidingWindowRateLimiter(clock=Mock(return_value=0.0))

    result = limiter.check("k", limit=1, window_seconds=60)

    assert datetime.fromisoformat(result.reset_at_iso) == datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "key,kwargs",
    [
        ("", {"limit": 1, "window_seconds": 60}),
        ("k", {"limit": 0, "window_seconds": 60}),
        ("k", {"limit": 1, "window_seconds": 0}),
    ],
)
def test_invalid_check_args(key: str, kwargs: dict) -> None:
    limiter = InMemorySlidingWindowRateLimiter()

    with pytest.raises(ValueError):
        limiter.check(key, **kwargs)
