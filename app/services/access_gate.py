"""Premium content access decisions.

Unlike the read views, this check fails closed: when the ledger cannot
answer, access is denied.
"""

from __future__ import annotations

import logging

from app.adapters.ledger.client_cache import LedgerClientCache
from app.utils.addresses import canonical_address, is_valid_address, is_zero_address, same_address

logger = logging.getLogger(__name__)


class AccessGate:
    def __init__(self, ledger: LedgerClientCache) -> None:
        self.ledger = ledger

    async def can_access(self, post_id: int, subscriber: str, creator: str) -> bool:
        """Whether ``subscriber`` may view post ``post_id`` by ``creator``.

        A post is only reachable through its own creator. Free posts are
        always accessible and never hit the subscription check. Premium
        posts defer to the ledger's ``isSubscribed``.
        """
        try:
            reader = await self.ledger.get_read_accessor()
            post = await reader.get_post(post_id)
            if is_zero_address(post.creator) or not same_address(post.creator, creator):
                return False
            if post.is_free:
                return True
            if not (is_valid_address(subscriber) and is_valid_address(creator)):
                return False
            return bool(
                await reader.is_subscribed(canonical_address(subscriber), canonical_address(creator))
            )
        except Exception as exc:
            logger.warning(
                "access.check_failed",
                extra={"post_id": post_id, "error_type": type(exc).__name__},
            )
            return False
