"""Factory for the application's ledger client cache."""

from app.adapters.ledger.client_cache import LedgerClientCache
from app.adapters.ledger.web3_client import Web3LedgerConnector
from app.core.config import LedgerSettings, settings


def create_ledger_client(ledger_settings: LedgerSettings | None = None) -> LedgerClientCache:
    """Build a LedgerClientCache for the configured network.

    Reads configuration from app.core.config.settings (Pydantic Settings).
    The contract address is not validated here: a malformed address surfaces
    as ``ConfigAppError`` on first use so the API can still start and report
    the problem on ``/health/ledger``.

    Returns:
        LedgerClientCache: Cache bound to a web3 connector.
    """
    cfg = ledger_settings or settings.ledger

    connector = Web3LedgerConnector(
        cfg.rpc_url,
        chain_id=cfg.chain_id,
        request_timeout_seconds=cfg.request_timeout_seconds,
        receipt_timeout_seconds=cfg.tx_receipt_timeout_seconds,
    )
    return LedgerClientCache(
        connector,
        cfg.contract_address,
        signer_private_key=cfg.signer_private_key,
    )
