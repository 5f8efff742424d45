"""Ledger adapter layer - contract access behind small async interfaces."""

from app.adapters.ledger.base import (
    AbstractLedgerConnector,
    AbstractLedgerReader,
    AbstractLedgerWriter,
    CreatorRecord,
    PostRecord,
    SubscriptionRecord,
    TransactionReceipt,
)
from app.adapters.ledger.client_cache import LedgerClientCache, LedgerStatus
from app.adapters.ledger.factory import create_ledger_client

__all__ = [
    "AbstractLedgerConnector",
    "AbstractLedgerReader",
    "AbstractLedgerWriter",
    "CreatorRecord",
    "LedgerClientCache",
    "LedgerStatus",
    "PostRecord",
    "SubscriptionRecord",
    "TransactionReceipt",
    "create_ledger_client",
]
