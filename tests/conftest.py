"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It seeds the environment before settings are imported and provides
in-memory stand-ins for the ledger and the content store.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")

CONTRACT_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
SIGNER_ADDRESS = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
CREATOR_ADDRESS = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
OTHER_CREATOR_ADDRESS = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
SUBSCRIBER_ADDRESS = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"
SIGNER_KEY = "0x" + "11" * 32
CID = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"

# Set default env vars that all tests might need
os.environ.setdefault("LEDGER_CONTRACT_ADDRESS", CONTRACT_ADDRESS)
os.environ.setdefault("LEDGER_CHAIN_ID", "31337")
os.environ.setdefault("LEDGER_SCAN_UPPER_BOUND", "20")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("STORAGE_PINATA_JWT", "test-jwt")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.adapters.ledger.base import (  # noqa: E402
    AbstractLedgerConnector,
    AbstractLedgerReader,
    AbstractLedgerWriter,
    CreatorRecord,
    PostRecord,
    SubscriptionRecord,
    TransactionReceipt,
)
from app.adapters.ledger.client_cache import LedgerClientCache  # noqa: E402
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter  # noqa: E402
from app.adapters.storage.base import AbstractContentStore, ContentMetadata, StoredContent  # noqa: E402
from app.core.errors import LedgerTransactionAppError, LedgerUnreachableAppError  # noqa: E402
from app.utils.addresses import ZERO_ADDRESS  # noqa: E402

API_HEADERS = {"X-API-Key": "test-api-key-123"}


class FakeLedger(AbstractLedgerWriter):
    """In-memory contract state implementing the reader and writer interfaces.

    Failures are injected per post id (``failing_post_ids``), for every read
    (``unavailable``), or for the next transaction (``revert_message``).
    """

    def __init__(self) -> None:
        self.address = CONTRACT_ADDRESS
        self.signer_address = SIGNER_ADDRESS
        self.creators: dict[str, CreatorRecord] = {}
        self.posts: dict[int, PostRecord] = {}
        self.subscriptions: dict[tuple[str, str], SubscriptionRecord] = {}
        self.earnings: dict[str, int] = {}
        self.subscribed: set[tuple[str, str]] = set()
        self.failing_post_ids: set[int] = set()
        self.unavailable = False
        self.revert_message: str | None = None
        self.post_lookups: list[int] = []
        self.is_subscribed_calls = 0
        self.sent: list[tuple] = []

    # Seeding helpers

    def put_creator(self, address: str, name: str, price: int = 10**16, post_ids: tuple[int, ...] = ()) -> None:
        self.creators[address.lower()] = CreatorRecord(
            wallet=address,
            name=name,
            subscription_price=price,
            is_registered=True,
            post_ids=post_ids,
        )

    def put_post(self, post_id: int, creator: str, is_free: bool = True, contributions: int = 0, content_ref: str = CID) -> None:
        self.posts[post_id] = PostRecord(
            post_id=post_id,
            creator=creator,
            content_ref=content_ref,
            is_free=is_free,
            contributions=contributions,
        )

    # Reader

    def _check_available(self) -> None:
        if self.unavailable:
            raise LedgerUnreachableAppError(code="ledger_unreachable", message="node down")

    async def get_creator(self, address: str) -> CreatorRecord:
        self._check_available()
        return self.creators.get(
            address.lower(),
            CreatorRecord(wallet=ZERO_ADDRESS, name="", subscription_price=0, is_registered=False),
        )

    async def get_post(self, post_id: int) -> PostRecord:
        self._check_available()
        self.post_lookups.append(post_id)
        if post_id in self.failing_post_ids:
            raise LedgerUnreachableAppError(code="ledger_read_reverted", message=f"post {post_id} failed")
        return self.posts.get(
            post_id,
            PostRecord(post_id=post_id, creator=ZERO_ADDRESS, content_ref="", is_free=False, contributions=0),
        )

    async def get_subscription(self, subscriber: str, creator: str) -> SubscriptionRecord:
        self._check_available()
        return self.subscriptions.get(
            (subscriber.lower(), creator.lower()),
            SubscriptionRecord(subscriber=subscriber, creator=creator, expiry=0, auto_pay_balance=0, stored_active=False),
        )

    async def get_earnings(self, address: str) -> int:
        self._check_available()
        return self.earnings.get(address.lower(), 0)

    async def is_subscribed(self, subscriber: str, creator: str) -> bool:
        self.is_subscribed_calls += 1
        self._check_available()
        return (subscriber.lower(), creator.lower()) in self.subscribed

    # Writer

    def _mined(self, *call) -> TransactionReceipt:
        if self.revert_message:
            raise LedgerTransactionAppError(code="transaction_reverted", message=self.revert_message)
        self.sent.append(call)
        return TransactionReceipt(
            tx_hash="0x" + f"{len(self.sent):064x}",
            block_number=100 + len(self.sent),
            gas_used=21000,
            status=1,
        )

    async def register_creator(self, name: str, subscription_price: int) -> TransactionReceipt:
        return self._mined("register_creator", name, subscription_price)

    async def add_post(self, content_ref: str, is_free: bool) -> TransactionReceipt:
        return self._mined("add_post", content_ref, is_free)

    async def contribute(self, post_id: int, amount: int) -> TransactionReceipt:
        return self._mined("contribute", post_id, amount)

    async def subscribe(self, creator: str, amount: int) -> TransactionReceipt:
        return self._mined("subscribe", creator, amount)

    async def deposit_auto_pay(self, creator: str, amount: int) -> TransactionReceipt:
        return self._mined("deposit_auto_pay", creator, amount)

    async def renew_subscription(self, creator: str) -> TransactionReceipt:
        return self._mined("renew_subscription", creator)

    async def withdraw_earnings(self) -> TransactionReceipt:
        return self._mined("withdraw_earnings")


class FakeConnector(AbstractLedgerConnector):
    """Connector handing out one shared FakeLedger."""

    def __init__(self, state: FakeLedger, code: bytes = b"\x60\x80", chain_id: int = 31337) -> None:
        self.state = state
        self.code = code
        self.chain_id = chain_id
        self.probe_error: Exception | None = None
        self.get_code_calls = 0

    async def get_code(self, address: str) -> bytes:
        self.get_code_calls += 1
        if self.probe_error is not None:
            raise self.probe_error
        return self.code

    def reader(self, address: str) -> AbstractLedgerReader:
        return self.state

    async def writer(self, address: str, private_key: str) -> AbstractLedgerWriter:
        return self.state


class FakeContentStore(AbstractContentStore):
    def __init__(self) -> None:
        self.stored: list[tuple[bytes, ContentMetadata]] = []

    async def store(self, blob: bytes, metadata: ContentMetadata) -> StoredContent:
        self.stored.append((blob, metadata))
        return StoredContent(
            content_id=CID,
            url=f"https://gateway.example/ipfs/{CID}",
            size=len(blob),
            content_type=metadata.content_type,
        )


@pytest.fixture
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def connector(fake_ledger: FakeLedger) -> FakeConnector:
    return FakeConnector(fake_ledger)


@pytest.fixture
def ledger(connector: FakeConnector) -> LedgerClientCache:
    return LedgerClientCache(connector, CONTRACT_ADDRESS, signer_private_key=SIGNER_KEY)


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def client(ledger: LedgerClientCache, content_store: FakeContentStore):
    from app.core.app_factory import create_app

    app = create_app(
        ledger=ledger,
        rate_limiter=InMemorySlidingWindowRateLimiter(),
        content_store=content_store,
    )
    with TestClient(app) as test_client:
        yield test_client
