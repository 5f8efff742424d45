"""Signed ledger mutations.

Each operation builds a fresh signer-bound accessor, runs the cheap
precondition reads the ledger would otherwise reject with an opaque
revert, submits the transaction and waits for it to be mined.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from app.adapters.ledger.base import AbstractLedgerWriter, TransactionReceipt
from app.adapters.ledger.client_cache import LedgerClientCache
from app.core.errors import (
    ConflictAppError,
    LedgerTransactionAppError,
    NotFoundAppError,
    ValidationAppError,
)
from app.schemas.views import TransactionView
from app.utils.addresses import canonical_address, is_zero_address
from app.utils.content_refs import is_valid_cid, normalize_content_ref

logger = logging.getLogger(__name__)

# Revert reasons meaning "this already exists" on the ledger side.
_CONFLICT_MARKERS = ("already",)


def _wei(value: str | int, field: str) -> int:
    try:
        amount = int(value)
    except (TypeError, ValueError):
        amount = -1
    if amount < 0:
        raise ValidationAppError(
            code="invalid_amount",
            message=f"{field} must be a non-negative integer amount in wei",
            details={"context": {"field": field}},
        )
    return amount


def _to_view(action: str, receipt: TransactionReceipt) -> TransactionView:
    return TransactionView(
        action=action,
        tx_hash=receipt.tx_hash,
        block_number=receipt.block_number,
        gas_used=receipt.gas_used,
        status=receipt.status,
    )


class LedgerWriteService:
    """Submits write transactions on behalf of the configured signer."""

    def __init__(self, ledger: LedgerClientCache) -> None:
        self.ledger = ledger

    async def _submit(
        self,
        action: str,
        send: Callable[[AbstractLedgerWriter], Awaitable[TransactionReceipt]],
        writer: AbstractLedgerWriter | None = None,
    ) -> TransactionView:
        writer = writer or await self.ledger.get_write_accessor()
        try:
            receipt = await send(writer)
        except LedgerTransactionAppError as exc:
            if any(marker in exc.message.lower() for marker in _CONFLICT_MARKERS):
                raise ConflictAppError(
                    code="ledger_conflict",
                    message=exc.message,
                    details=exc.details,
                ) from exc
            raise

        logger.info(
            "ledger.write_completed",
            extra={"action": action, "tx_hash": receipt.tx_hash, "block_number": receipt.block_number},
        )
        return _to_view(action, receipt)

    async def _require_registered(self, writer: AbstractLedgerWriter, address: str) -> None:
        creator = await writer.get_creator(address)
        if not creator.is_registered:
            raise NotFoundAppError(
                code="creator_not_found",
                message="Creator not found",
                details={"address": address},
            )

    async def register_creator(self, name: str, subscription_price: str) -> TransactionView:
        """Register the signer as a creator, or update its name and price."""
        price = _wei(subscription_price, "subscription_price")
        return await self._submit(
            "register_creator",
            lambda w: w.register_creator(name, price),
        )

    async def add_post(self, content_ref: str, is_free: bool) -> TransactionView:
        """Publish a post owned by the signer.

        Raises:
            ValidationAppError: If ``content_ref`` is not a content identifier.
            NotFoundAppError: If the signer is not a registered creator.
        """
        ref = normalize_content_ref(content_ref)
        if not is_valid_cid(ref):
            raise ValidationAppError(
                code="invalid_content_ref",
                message="Invalid IPFS hash format",
                details={"hint": "Upload the content first and pass its content identifier"},
            )

        writer = await self.ledger.get_write_accessor()
        await self._require_registered(writer, writer.signer_address)
        return await self._submit("add_post", lambda w: w.add_post(ref, is_free), writer)

    async def contribute(self, post_id: int, amount: str) -> TransactionView:
        """Tip post ``post_id``.

        Raises:
            NotFoundAppError: If no post exists with that id.
        """
        value = _wei(amount, "amount")
        writer = await self.ledger.get_write_accessor()
        post = await writer.get_post(post_id)
        if is_zero_address(post.creator):
            raise NotFoundAppError(
                code="post_not_found",
                message="Post not found",
                details={"post_id": post_id},
            )
        return await self._submit("contribute", lambda w: w.contribute(post_id, value), writer)

    async def subscribe(self, creator: str, amount: str) -> TransactionView:
        """Pay for a subscription to ``creator``.

        Raises:
            NotFoundAppError: If ``creator`` is not registered.
        """
        creator_address = canonical_address(creator)
        value = _wei(amount, "amount")
        writer = await self.ledger.get_write_accessor()
        await self._require_registered(writer, creator_address)
        return await self._submit("subscribe", lambda w: w.subscribe(creator_address, value), writer)

    async def deposit_auto_pay(self, creator: str, amount: str) -> TransactionView:
        creator_address = canonical_address(creator)
        value = _wei(amount, "amount")
        return await self._submit(
            "deposit_auto_pay",
            lambda w: w.deposit_auto_pay(creator_address, value),
        )

    async def renew_subscription(self, creator: str) -> TransactionView:
        creator_address = canonical_address(creator)
        return await self._submit(
            "renew_subscription",
            lambda w: w.renew_subscription(creator_address),
        )

    async def withdraw_earnings(self) -> TransactionView:
        return await self._submit("withdraw_earnings", lambda w: w.withdraw_earnings())
