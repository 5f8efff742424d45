"""Tests for the rate limiting FastAPI wiring."""

import asyncio
from unittest.mock import Mock

import pytest

from app.core.rate_limit import RateLimitTier, client_identity, run_sweeper, tier_budget


def _request(headers: dict | None = None, host: str | None = "203.0.113.9") -> Mock:
    request = Mock()
    request.headers = headers or {}
    request.client = Mock(host=host) if host else None
    return request


@pytest.mark.parametrize(
    "headers,host,expected",
    [
        ({"x-forwarded-for": "198.51.100.1, 10.0.0.1"}, "203.0.113.9", "ip:198.51.100.1"),
        ({"x-forwarded-for": "  "}, "203.0.113.9", "ip:203.0.113.9"),
        ({}, "203.0.113.9", "ip:203.0.113.9"),
        ({}, None, "ip:unknown"),
    ],
)
def test_client_identity(headers: dict, host, expected: str) -> None:
    assert client_identity(_request(headers, host)) == expected


def test_default_tier_budgets() -> None:
    assert tier_budget(RateLimitTier.READ) == (100, 60)
    assert tier_budget(RateLimitTier.WRITE) == (20, 60)
    assert tier_budget(RateLimitTier.REGISTER) == (10, 60)
    assert tier_budget(RateLimitTier.UPLOAD) == (10, 60)


@pytest.mark.asyncio
async def test_sweeper_runs_until_cancelled() -> None:
    limiter = Mock()
    limiter.sweep = Mock(return_value=1)

    task = asyncio.create_task(run_sweeper(limiter, 0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert limiter.sweep.call_count >= 1
