"""web3.py implementation of the ledger accessor interfaces."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Sequence

from eth_account import Account
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, Web3Exception

from app.adapters.ledger.abi import CONTRACT_ABI
from app.adapters.ledger.base import (
    AbstractLedgerConnector,
    AbstractLedgerReader,
    AbstractLedgerWriter,
    CreatorRecord,
    PostRecord,
    SubscriptionRecord,
    TransactionReceipt,
)
from app.core.errors import (
    ConfigAppError,
    LedgerTransactionAppError,
    LedgerUnreachableAppError,
)

logger = logging.getLogger(__name__)

_HARDHAT_REASON_RE = re.compile(r"reverted with reason string '(.*)'")


def decode_creator(raw: Sequence[Any]) -> CreatorRecord:
    """Decode the ``creators`` getter tuple.

    Contract builds whose getter also returns the owned id list produce a
    fifth element; the deployed ABI yields four.
    """
    post_ids: tuple[int, ...] = ()
    if len(raw) > 4 and raw[4]:
        post_ids = tuple(int(p) for p in raw[4])
    return CreatorRecord(
        wallet=str(raw[0]),
        name=str(raw[1] or ""),
        subscription_price=int(raw[2]),
        is_registered=bool(raw[3]),
        post_ids=post_ids,
    )


def decode_post(post_id: int, raw: Sequence[Any]) -> PostRecord:
    """Decode the ``posts`` getter tuple (id, creator, ipfsHash, isFree, contributions)."""
    return PostRecord(
        post_id=post_id,
        creator=str(raw[1]),
        content_ref=str(raw[2] or ""),
        is_free=bool(raw[3]),
        contributions=int(raw[4]),
    )


def revert_reason(exc: BaseException) -> str | None:
    """Best-effort extraction of a human readable revert reason."""
    message = getattr(exc, "message", None) or (str(exc.args[0]) if exc.args else "")
    if not message:
        return None
    match = _HARDHAT_REASON_RE.search(message)
    if match:
        return match.group(1)
    for prefix in ("execution reverted: ", "execution reverted"):
        if message.startswith(prefix):
            return message[len(prefix):].strip() or None
    return message


class Web3LedgerReader(AbstractLedgerReader):
    """Read-only contract accessor over an ``AsyncWeb3`` provider."""

    def __init__(self, w3: AsyncWeb3, address: str) -> None:
        self.w3 = w3
        self.address = address
        self.contract = w3.eth.contract(address=address, abi=CONTRACT_ABI)

    async def _call(self, label: str, fn: Any) -> Any:
        try:
            return await fn.call()
        except ContractLogicError as exc:
            raise LedgerUnreachableAppError(
                code="ledger_read_reverted",
                message=f"Ledger rejected read '{label}'",
                details={"revert_reason": revert_reason(exc) or ""},
            ) from exc
        except Exception as exc:
            raise LedgerUnreachableAppError(
                code="ledger_unreachable",
                message=f"Ledger read '{label}' failed: {type(exc).__name__}",
            ) from exc

    async def get_creator(self, address: str) -> CreatorRecord:
        raw = await self._call("creators", self.contract.functions.creators(address))
        return decode_creator(raw)

    async def get_post(self, post_id: int) -> PostRecord:
        raw = await self._call("posts", self.contract.functions.posts(post_id))
        return decode_post(post_id, raw)

    async def get_subscription(self, subscriber: str, creator: str) -> SubscriptionRecord:
        raw = await self._call(
            "subscriptions", self.contract.functions.subscriptions(subscriber, creator)
        )
        return SubscriptionRecord(
            subscriber=subscriber,
            creator=creator,
            expiry=int(raw[0]),
            auto_pay_balance=int(raw[1]),
            stored_active=bool(raw[2]),
        )

    async def get_earnings(self, address: str) -> int:
        return int(await self._call("creatorEarnings", self.contract.functions.creatorEarnings(address)))

    async def is_subscribed(self, subscriber: str, creator: str) -> bool:
        return bool(
            await self._call("isSubscribed", self.contract.functions.isSubscribed(subscriber, creator))
        )


class Web3LedgerWriter(Web3LedgerReader, AbstractLedgerWriter):
    """Contract accessor that signs transactions with a local key."""

    def __init__(
        self,
        w3: AsyncWeb3,
        address: str,
        account: Any,
        *,
        chain_id: int,
        receipt_timeout_seconds: float,
    ) -> None:
        super().__init__(w3, address)
        self._account = account
        self.signer_address = account.address
        self.chain_id = chain_id
        self.receipt_timeout_seconds = receipt_timeout_seconds

    async def _transact(self, label: str, fn: Any, *, value: int = 0) -> TransactionReceipt:
        try:
            nonce = await self.w3.eth.get_transaction_count(self.signer_address, "pending")
            tx = await fn.build_transaction(
                {
                    "from": self.signer_address,
                    "value": value,
                    "nonce": nonce,
                    "chainId": self.chain_id,
                }
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout_seconds
            )
        except ContractLogicError as exc:
            reason = revert_reason(exc)
            raise LedgerTransactionAppError(
                code="transaction_reverted",
                message=reason or f"Failed to {label}",
                details={"revert_reason": reason or ""},
            ) from exc
        except Web3Exception as exc:
            raise LedgerTransactionAppError(
                code="transaction_failed",
                message=str(exc) or f"Failed to {label}",
            ) from exc
        except (OSError, asyncio.TimeoutError) as exc:
            raise LedgerUnreachableAppError(
                code="ledger_unreachable",
                message=f"Ledger unreachable while trying to {label}",
            ) from exc

        result = TransactionReceipt(
            tx_hash=Web3.to_hex(receipt["transactionHash"]),
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            status=int(receipt["status"]),
        )
        if result.status != 1:
            raise LedgerTransactionAppError(
                code="transaction_reverted",
                message=f"Failed to {label}",
                details={"context": {"tx_hash": result.tx_hash}},
            )

        logger.info(
            "ledger.transaction_mined",
            extra={"action": label, "tx_hash": result.tx_hash, "block_number": result.block_number},
        )
        return result

    async def register_creator(self, name: str, subscription_price: int) -> TransactionReceipt:
        return await self._transact(
            "register creator", self.contract.functions.registerCreator(name, subscription_price)
        )

    async def add_post(self, content_ref: str, is_free: bool) -> TransactionReceipt:
        return await self._transact("create post", self.contract.functions.addPost(content_ref, is_free))

    async def contribute(self, post_id: int, amount: int) -> TransactionReceipt:
        return await self._transact("contribute", self.contract.functions.contribute(post_id), value=amount)

    async def subscribe(self, creator: str, amount: int) -> TransactionReceipt:
        return await self._transact("subscribe", self.contract.functions.subscribe(creator), value=amount)

    async def deposit_auto_pay(self, creator: str, amount: int) -> TransactionReceipt:
        return await self._transact(
            "deposit auto-pay", self.contract.functions.depositAutoPay(creator), value=amount
        )

    async def renew_subscription(self, creator: str) -> TransactionReceipt:
        return await self._transact("renew subscription", self.contract.functions.renewSubscription(creator))

    async def withdraw_earnings(self) -> TransactionReceipt:
        return await self._transact("withdraw earnings", self.contract.functions.withdrawEarnings())


class Web3LedgerConnector(AbstractLedgerConnector):
    """Connector for a single JSON-RPC endpoint.

    One ``AsyncWeb3`` instance is shared by every accessor built here.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        chain_id: int,
        request_timeout_seconds: float = 15.0,
        receipt_timeout_seconds: float = 120.0,
    ) -> None:
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.receipt_timeout_seconds = receipt_timeout_seconds
        self.w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout_seconds})
        )

    async def get_code(self, address: str) -> bytes:
        return bytes(await self.w3.eth.get_code(address))

    def reader(self, address: str) -> AbstractLedgerReader:
        return Web3LedgerReader(self.w3, address)

    async def writer(self, address: str, private_key: str) -> AbstractLedgerWriter:
        try:
            account = Account.from_key(private_key)
        except Exception as exc:
            raise ConfigAppError(
                code="invalid_signer_key",
                message="Configured signer key is not a valid private key",
            ) from exc

        try:
            active_chain = await self.w3.eth.chain_id
        except Exception as exc:
            raise LedgerUnreachableAppError(
                code="ledger_unreachable",
                message="Cannot reach the ledger node to prepare a transaction",
            ) from exc

        if active_chain != self.chain_id:
            raise ConfigAppError(
                code="wrong_network",
                message=f"Ledger node is on chain {active_chain}, expected {self.chain_id}",
                details={"chain_id": self.chain_id},
            )

        return Web3LedgerWriter(
            self.w3,
            address,
            account,
            chain_id=self.chain_id,
            receipt_timeout_seconds=self.receipt_timeout_seconds,
        )
