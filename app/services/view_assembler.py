"""Read-only creator and subscription views.

Every method here is fail-open: a ledger failure yields the canonical
default view rather than an error, so a flaky node degrades the UI instead
of breaking it.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Callable

from app.adapters.ledger.client_cache import LedgerClientCache
from app.schemas.views import ProfileView, StatsView, SubscriptionView
from app.services.post_discovery import PostDiscovery
from app.utils.addresses import canonical_address, is_valid_address

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400


def _display_address(value: str) -> str:
    return canonical_address(value) if is_valid_address(value) else value


def days_remaining(expiry: int, now: float) -> int:
    """Whole days left before ``expiry``, rounded up; 0 once expired."""
    if expiry <= now:
        return 0
    return math.ceil((expiry - now) / SECONDS_PER_DAY)


class ViewAssembler:
    """Composes profile, stats and subscription views from point reads."""

    def __init__(
        self,
        ledger: LedgerClientCache,
        discovery: PostDiscovery,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ledger = ledger
        self.discovery = discovery
        self._clock = clock

    async def get_creator_profile(self, address: str) -> ProfileView:
        """Creator record plus withdrawable earnings.

        Args:
            address: Creator address in any case.

        Returns:
            The profile, or the zeroed default when the address is not a
            registered creator or any read fails.
        """
        default = ProfileView(address=_display_address(address))
        if not is_valid_address(address):
            return default

        creator_address = canonical_address(address)
        try:
            reader = await self.ledger.get_read_accessor()
            creator, earnings = await asyncio.gather(
                reader.get_creator(creator_address),
                reader.get_earnings(creator_address),
            )
        except Exception as exc:
            logger.warning(
                "views.profile_read_failed",
                extra={"address": creator_address, "error_type": type(exc).__name__},
            )
            return default

        if not creator.is_registered:
            return default

        return ProfileView(
            address=creator_address,
            name=creator.name,
            subscription_price=str(creator.subscription_price),
            post_ids=list(creator.post_ids),
            is_registered=True,
            earnings=str(earnings),
        )

    async def get_creator_stats(self, address: str) -> StatsView:
        """Aggregate stats; ``total_supporters`` is always 0."""
        if not is_valid_address(address):
            return StatsView()

        try:
            profile, posts = await asyncio.gather(
                self.get_creator_profile(address),
                self.discovery.list_posts_by_creator(address),
            )
        except Exception as exc:
            logger.warning(
                "views.stats_failed",
                extra={"address": address, "error_type": type(exc).__name__},
            )
            return StatsView()

        return StatsView(
            total_tips=profile.earnings,
            total_supporters=0,
            total_posts=len(posts),
        )

    async def get_subscription_view(self, subscriber: str, creator: str) -> SubscriptionView:
        """Subscription status for a (subscriber, creator) pair.

        Activity is recomputed from the expiry against the current time;
        the flag stored on the ledger is ignored.
        """
        default = SubscriptionView(
            subscriber=_display_address(subscriber),
            creator=_display_address(creator),
        )
        if not (is_valid_address(subscriber) and is_valid_address(creator)):
            return default

        subscriber_address = canonical_address(subscriber)
        creator_address = canonical_address(creator)
        try:
            reader = await self.ledger.get_read_accessor()
            record = await reader.get_subscription(subscriber_address, creator_address)
        except Exception as exc:
            logger.warning(
                "views.subscription_read_failed",
                extra={
                    "subscriber": subscriber_address,
                    "creator": creator_address,
                    "error_type": type(exc).__name__,
                },
            )
            return default

        now = self._clock()
        return SubscriptionView(
            subscriber=subscriber_address,
            creator=creator_address,
            expiry=record.expiry,
            auto_pay_balance=str(record.auto_pay_balance),
            is_active=record.expiry > now,
            days_remaining=days_remaining(record.expiry, now),
        )
