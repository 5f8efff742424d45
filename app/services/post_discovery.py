"""Post discovery over a ledger that only supports point lookups.

The contract has no enumeration primitive and this service does not consume
events, so collections are rebuilt by probing sequential post ids. This is
O(N) lookups per call where N is the configured upper bound, not O(posts);
it stands in until an indexing collaborator exists.

Guarantees:
- Read-only and idempotent.
- One failing id never aborts a scan; that id is simply left out.
- Results are sorted by id, highest (most recent) first.
- Total ledger unavailability yields an empty list, never an exception.
"""

from __future__ import annotations

import asyncio
import logging

from app.adapters.ledger.base import AbstractLedgerReader, CreatorRecord, PostRecord
from app.adapters.ledger.client_cache import LedgerClientCache
from app.core.config import settings
from app.core.errors import AppError
from app.schemas.views import PostView
from app.utils.addresses import canonical_address, is_valid_address, is_zero_address, same_address
from app.utils.content_refs import gateway_url

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


class PostDiscovery:
    """Rebuilds "all posts" and "posts by creator" views from point lookups.

    Attributes:
        ledger: Client cache handing out the verified read accessor.
        scan_upper_bound: Highest id probed by a sequential scan.
        concurrency: Maximum lookups in flight at once.
        timeout_seconds: Deadline for one whole scan; partial results are
            returned when it expires.
    """

    def __init__(
        self,
        ledger: LedgerClientCache,
        *,
        scan_upper_bound: int | None = None,
        concurrency: int | None = None,
        timeout_seconds: float | None = None,
        gateway: str | None = None,
    ) -> None:
        self.ledger = ledger
        cfg = settings.ledger
        self.scan_upper_bound = cfg.scan_upper_bound if scan_upper_bound is None else scan_upper_bound
        self.concurrency = cfg.scan_concurrency if concurrency is None else concurrency
        self.timeout_seconds = cfg.scan_timeout_seconds if timeout_seconds is None else timeout_seconds
        self.gateway = gateway or settings.storage.gateway_url

    async def _reader(self) -> AbstractLedgerReader | None:
        try:
            return await self.ledger.get_read_accessor()
        except AppError as exc:
            logger.warning("discovery.ledger_unavailable", extra={"error_code": exc.code})
            return None

    def _to_view(self, post: PostRecord, creator_name: str) -> PostView:
        return PostView(
            id=post.post_id,
            creator=canonical_address(post.creator),
            creator_name=creator_name or ANONYMOUS,
            content_ref=post.content_ref,
            content_url=gateway_url(post.content_ref, self.gateway),
            is_free=post.is_free,
            is_premium=not post.is_free,
            contributions=str(post.contributions),
            title=f"Post #{post.post_id}",
        )

    async def _lookup(self, reader: AbstractLedgerReader, post_id: int) -> PostRecord | None:
        """Point lookup with per-id fault isolation."""
        try:
            post = await reader.get_post(post_id)
        except Exception as exc:
            logger.debug(
                "discovery.lookup_failed",
                extra={"post_id": post_id, "error_type": type(exc).__name__},
            )
            return None
        if is_zero_address(post.creator) or not is_valid_address(post.creator):
            return None
        return post

    async def _resolve(self, reader: AbstractLedgerReader, post_ids: list[int]) -> list[PostRecord]:
        """Look up ``post_ids`` concurrently under the scan deadline.

        Records found before the deadline are kept; slow lookups are
        cancelled.
        """
        semaphore = asyncio.Semaphore(self.concurrency)
        found: dict[int, PostRecord] = {}

        async def worker(post_id: int) -> None:
            async with semaphore:
                post = await self._lookup(reader, post_id)
            if post is not None:
                found[post_id] = post

        tasks = [asyncio.create_task(worker(post_id)) for post_id in dict.fromkeys(post_ids)]
        if not tasks:
            return []

        try:
            _, pending = await asyncio.wait(tasks, timeout=self.timeout_seconds)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "discovery.scan_deadline_exceeded",
                extra={
                    "timeout_seconds": self.timeout_seconds,
                    "pending": len(pending),
                    "found": len(found),
                },
            )

        return sorted(found.values(), key=lambda p: p.post_id, reverse=True)

    async def _creator_names(
        self, reader: AbstractLedgerReader, posts: list[PostRecord]
    ) -> dict[str, str]:
        """Fetch each distinct creator's name once per scan."""
        creators = list(dict.fromkeys(p.creator.lower() for p in posts))

        async def name_of(address: str) -> str:
            try:
                record = await reader.get_creator(canonical_address(address))
            except Exception:
                return ANONYMOUS
            return record.name or ANONYMOUS

        names = await asyncio.gather(*(name_of(a) for a in creators))
        return dict(zip(creators, names))

    def _scan_ids(self) -> list[int]:
        return list(range(1, self.scan_upper_bound + 1))

    async def list_all_posts(self) -> list[PostView]:
        """Every post with a non-zero creator among ids ``1..N``, newest first."""
        reader = await self._reader()
        if reader is None:
            return []

        posts = await self._resolve(reader, self._scan_ids())
        names = await self._creator_names(reader, posts)
        return [self._to_view(p, names.get(p.creator.lower(), ANONYMOUS)) for p in posts]

    async def list_posts_by_creator(self, address: str) -> list[PostView]:
        """Posts owned by ``address``, newest first.

        Uses the creator's own id list when the ledger returns one; otherwise
        falls back to a filtered sequential scan.
        """
        if not is_valid_address(address):
            return []
        creator_address = canonical_address(address)

        reader = await self._reader()
        if reader is None:
            return []

        creator: CreatorRecord | None
        try:
            creator = await reader.get_creator(creator_address)
        except Exception as exc:
            logger.info(
                "discovery.creator_read_failed",
                extra={"address": creator_address, "error_type": type(exc).__name__},
            )
            creator = None

        if creator is not None and not creator.is_registered:
            return []

        if creator is not None and creator.post_ids:
            candidate_ids = [int(i) for i in creator.post_ids if int(i) > 0]
            strategy = "owned_ids"
        else:
            candidate_ids = self._scan_ids()
            strategy = "scan"

        posts = [
            p
            for p in await self._resolve(reader, candidate_ids)
            if same_address(p.creator, creator_address)
        ]
        logger.debug(
            "discovery.creator_posts",
            extra={"address": creator_address, "strategy": strategy, "found": len(posts)},
        )

        name = creator.name if creator is not None and creator.name else ANONYMOUS
        return [self._to_view(p, name) for p in posts]

    async def get_post(self, post_id: int) -> PostView | None:
        """Single post by id, or ``None`` when the slot is empty or unreadable."""
        if post_id < 1:
            return None
        reader = await self._reader()
        if reader is None:
            return None

        post = await self._lookup(reader, post_id)
        if post is None:
            return None
        names = await self._creator_names(reader, [post])
        return self._to_view(post, names.get(post.creator.lower(), ANONYMOUS))
