"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on ``rate_limit(tier)`` only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Per call site budgets: reads are looser than writes; registration and uploads are tightest.

Rate limiting strategy:
- Sliding window per client identity and tier.
- Identity is the first ``X-Forwarded-For`` hop, else the socket peer.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitedAppError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)


class RateLimitTier(str, Enum):
    """Budgets applied at different call sites."""

    READ = "read"
    WRITE = "write"
    REGISTER = "register"
    UPLOAD = "upload"


def tier_budget(tier: RateLimitTier) -> tuple[int, float]:
    """Return ``(limit, window_seconds)`` configured for ``tier``."""

    cfg = settings.app
    budgets = {
        RateLimitTier.READ: (cfg.rate_limit_read_requests, cfg.rate_limit_read_window_seconds),
        RateLimitTier.WRITE: (cfg.rate_limit_write_requests, cfg.rate_limit_write_window_seconds),
        RateLimitTier.REGISTER: (cfg.rate_limit_register_requests, cfg.rate_limit_register_window_seconds),
        RateLimitTier.UPLOAD: (cfg.rate_limit_upload_requests, cfg.rate_limit_upload_window_seconds),
    }
    return budgets[tier]


def client_identity(request: Request) -> str:
    """Identify the caller for rate limiting purposes.

    Args:
        request: FastAPI request.

    Returns:
        str: Namespaced identity (``ip:<address>``).
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return f"ip:{first_hop}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


def rate_limit(tier: RateLimitTier) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing the budget of ``tier``.

    Usage:
        @router.post("/things", dependencies=[Depends(rate_limit(RateLimitTier.WRITE))])

    Args:
        tier: Which configured budget to apply.

    Returns:
        Dependency callable raising RateLimitedAppError (HTTP 429) when the
        caller is over budget.
    """

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return

        limit, window_seconds = tier_budget(tier)
        identity = client_identity(request)
        key = f"{tier.value}:{identity}"

        result = get_rate_limiter(request).check(key, limit=limit, window_seconds=window_seconds)
        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "tier": tier.value,
                    "key_hash": hash_for_log(identity),
                    "remaining": result.remaining,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "tier": tier.value,
                "key_hash": hash_for_log(identity),
                "limit": result.limit,
                "window_s": window_seconds,
                "retry_after_s": result.retry_after_seconds,
            },
        )

        raise RateLimitedAppError(
            code="rate_limit_exceeded",
            message="Rate limit exceeded. Try again later.",
            details=(
                {
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "reset_at": result.reset_at_iso,
                    "retry_after": float(result.retry_after_seconds or 0),
                }
                if settings.app.rate_limit_include_headers
                else None
            ),
        )

    return enforce_rate_limit


async def run_sweeper(limiter: AbstractRateLimiter, interval_seconds: float) -> None:
    """Periodically drop idle identities until cancelled."""

    while True:
        await asyncio.sleep(interval_seconds)
        removed = limiter.sweep()
        if removed:
            logger.debug("rate_limit.swept", extra={"removed": removed})
