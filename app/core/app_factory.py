from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and the
application-owned collaborators) so tests can build isolated instances.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.adapters.ledger.client_cache import LedgerClientCache
from app.adapters.ledger.factory import create_ledger_client
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.adapters.storage.base import AbstractContentStore
from app.adapters.storage.factory import create_content_store
from app.api.routes import (
    creators_router,
    health_router,
    posts_router,
    subscriptions_router,
    uploads_router,
)
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import run_sweeper

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the rate limiter sweeper for the lifetime of the app."""
    sweeper = asyncio.create_task(
        run_sweeper(app.state.rate_limiter, settings.app.rate_limit_sweep_interval_seconds)
    )
    logger.info(
        "app.started",
        extra={"chain_id": app.state.ledger.chain_id, "rate_limit_enabled": settings.app.rate_limit_enabled},
    )
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        logger.info("app.stopped")


def create_app(
    *,
    ledger: LedgerClientCache | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
    content_store: AbstractContentStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        ledger: Ledger client cache; built from ``LEDGER_*`` settings when omitted.
        rate_limiter: Limiter shared by all tiers; in-memory when omitted.
        content_store: Content storage backend; Pinata when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Creator Ledger API",
        description=(
            "Read and write access to a creator-subscription ledger contract: "
            "post discovery, creator profiles and stats, subscription status, "
            "premium content access checks, signed ledger writes and content "
            "uploads. Mutations require X-API-Key; every endpoint is rate limited."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=_lifespan,
    )

    # Application-owned collaborators
    app.state.ledger = ledger or create_ledger_client()
    app.state.rate_limiter = rate_limiter or InMemorySlidingWindowRateLimiter()
    app.state.content_store = content_store or create_content_store()

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(posts_router, prefix="/v1")
    app.include_router(creators_router, prefix="/v1")
    app.include_router(subscriptions_router, prefix="/v1")
    app.include_router(uploads_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
