"""Ledger accessor interfaces and record types.

Services depend on these abstractions only. The web3 implementation lives in
``web3_client``; tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CreatorRecord:
    """Creator entry as stored on the ledger.

    ``post_ids`` is empty when the contract getter does not expose the
    list (public struct getters omit dynamic arrays).
    """

    wallet: str
    name: str
    subscription_price: int
    is_registered: bool
    post_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PostRecord:
    """Post entry; ``creator`` is the zero address for empty slots."""

    post_id: int
    creator: str
    content_ref: str
    is_free: bool
    contributions: int


@dataclass(frozen=True)
class SubscriptionRecord:
    """Subscription entry keyed by (subscriber, creator).

    ``stored_active`` is whatever the ledger last wrote; readers must
    recompute activity from ``expiry``.
    """

    subscriber: str
    creator: str
    expiry: int
    auto_pay_balance: int
    stored_active: bool


@dataclass(frozen=True)
class TransactionReceipt:
    """Outcome of a mined write transaction."""

    tx_hash: str
    block_number: int
    gas_used: int
    status: int


class AbstractLedgerReader(ABC):
    """Read-only point lookups against the contract."""

    address: str

    @abstractmethod
    async def get_creator(self, address: str) -> CreatorRecord:
        """Read the creator record for a checksummed address."""

    @abstractmethod
    async def get_post(self, post_id: int) -> PostRecord:
        """Read one post slot. Empty slots come back with the zero creator."""

    @abstractmethod
    async def get_subscription(self, subscriber: str, creator: str) -> SubscriptionRecord:
        """Read the (subscriber, creator) subscription slot."""

    @abstractmethod
    async def get_earnings(self, address: str) -> int:
        """Withdrawable earnings of a creator, in wei."""

    @abstractmethod
    async def is_subscribed(self, subscriber: str, creator: str) -> bool:
        """The contract's own subscription check."""


class AbstractLedgerWriter(AbstractLedgerReader):
    """Reader bound to a signer that can also submit transactions.

    Every method waits for the transaction to be mined and raises
    ``LedgerTransactionAppError`` (with the revert reason when available)
    if it is rejected.
    """

    signer_address: str

    @abstractmethod
    async def register_creator(self, name: str, subscription_price: int) -> TransactionReceipt:
        ...

    @abstractmethod
    async def add_post(self, content_ref: str, is_free: bool) -> TransactionReceipt:
        ...

    @abstractmethod
    async def contribute(self, post_id: int, amount: int) -> TransactionReceipt:
        ...

    @abstractmethod
    async def subscribe(self, creator: str, amount: int) -> TransactionReceipt:
        ...

    @abstractmethod
    async def deposit_auto_pay(self, creator: str, amount: int) -> TransactionReceipt:
        ...

    @abstractmethod
    async def renew_subscription(self, creator: str) -> TransactionReceipt:
        ...

    @abstractmethod
    async def withdraw_earnings(self) -> TransactionReceipt:
        ...


class AbstractLedgerConnector(ABC):
    """Builds accessors for one network and answers the existence probe."""

    chain_id: int

    @abstractmethod
    async def get_code(self, address: str) -> bytes:
        """Executable code stored at ``address`` (empty when none)."""

    @abstractmethod
    def reader(self, address: str) -> AbstractLedgerReader:
        """Build a read-only accessor bound to the contract at ``address``."""

    @abstractmethod
    async def writer(self, address: str, private_key: str) -> AbstractLedgerWriter:
        """Build a signer-bound accessor.

        Raises:
            ConfigAppError: If the key is malformed or the node is on another chain.
            LedgerUnreachableAppError: If the node cannot be reached.
        """
