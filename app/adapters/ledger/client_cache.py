"""Verified, cached access to the ledger contract.

One instance is created by the application factory and kept on
``app.state.ledger``; handlers receive it through a dependency. Nothing here
is module-global, so tests can run several caches side by side.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from app.adapters.ledger.base import (
    AbstractLedgerConnector,
    AbstractLedgerReader,
    AbstractLedgerWriter,
)
from app.core.errors import (
    ConfigAppError,
    LedgerNotDeployedAppError,
    WalletUnavailableAppError,
)
from app.utils.addresses import canonical_address, is_valid_address

logger = logging.getLogger(__name__)

NOT_DEPLOYED_DIAGNOSTIC = "No contract found at this address. Deploy the contract first."


@dataclass(frozen=True)
class LedgerStatus:
    """Snapshot of what the cache knows about the configured contract.

    ``deployed`` is ``None`` until a probe has answered (or when the probe
    failed transiently).
    """

    contract_address: str
    chain_id: int
    verified: bool
    deployed: bool | None
    diagnostic: str | None


class LedgerClientCache:
    """Lazily builds and memoizes the read accessor.

    The first :meth:`get_read_accessor` call checks that code exists at the
    contract address. The outcome is kept until :meth:`reset_cache`:

    * code found: the accessor is returned from then on without probing;
    * no code: every call raises ``LedgerNotDeployedAppError`` without probing;
    * probe failed (node unreachable): verification is marked done and the
      accessor is returned anyway so later calls don't retry the probe.
    """

    def __init__(
        self,
        connector: AbstractLedgerConnector,
        contract_address: str,
        *,
        signer_private_key: str | None = None,
    ) -> None:
        self._connector = connector
        self._raw_address = contract_address
        self._signer_private_key = signer_private_key
        self._lock = asyncio.Lock()
        self._verified = False
        self._deployed: bool | None = None
        self._accessor: AbstractLedgerReader | None = None
        self.probe_count = 0

    @property
    def chain_id(self) -> int:
        return self._connector.chain_id

    def contract_address(self) -> str:
        """Checksummed contract address.

        Raises:
            ConfigAppError: If the configured address is not 20-byte hex.
        """
        if not is_valid_address(self._raw_address):
            raise ConfigAppError(
                code="invalid_contract_address",
                message="Invalid contract address. Please check your configuration.",
                details={"hint": "Set LEDGER_CONTRACT_ADDRESS to the deployed contract"},
            )
        return canonical_address(self._raw_address)

    async def get_read_accessor(self) -> AbstractLedgerReader:
        """Return the verified read-only accessor.

        Raises:
            ConfigAppError: If the configured address is malformed.
            LedgerNotDeployedAppError: If the probe found no code at the address.
        """
        address = self.contract_address()

        if self._verified:
            return self._cached_or_raise(address)

        async with self._lock:
            # Another task may have finished the probe while we waited.
            if not self._verified:
                await self._probe(address)
            return self._cached_or_raise(address)

    async def _probe(self, address: str) -> None:
        self.probe_count += 1
        try:
            code = await self._connector.get_code(address)
        except Exception as exc:
            logger.warning(
                "ledger.probe_failed",
                extra={"contract_address": address, "error_type": type(exc).__name__},
            )
            self._deployed = None
        else:
            self._deployed = len(code) > 0
            if not self._deployed:
                logger.error(
                    "ledger.not_deployed",
                    extra={"contract_address": address, "chain_id": self.chain_id},
                )
            else:
                logger.info(
                    "ledger.verified",
                    extra={"contract_address": address, "chain_id": self.chain_id},
                )

        self._verified = True
        if self._deployed is not False:
            self._accessor = self._connector.reader(address)

    def _cached_or_raise(self, address: str) -> AbstractLedgerReader:
        if self._deployed is False or self._accessor is None:
            raise LedgerNotDeployedAppError(
                code="ledger_not_deployed",
                message=NOT_DEPLOYED_DIAGNOSTIC,
                details={"address": address, "chain_id": self.chain_id},
            )
        return self._accessor

    async def get_write_accessor(self) -> AbstractLedgerWriter:
        """Build a fresh signer-bound accessor (never cached).

        Raises:
            ConfigAppError: If the contract address or signer key is malformed.
            WalletUnavailableAppError: If no signer key is configured.
        """
        address = self.contract_address()
        if not self._signer_private_key:
            raise WalletUnavailableAppError(
                code="wallet_unavailable",
                message="No signing wallet is configured for ledger writes.",
                details={"hint": "Set LEDGER_SIGNER_PRIVATE_KEY to enable write endpoints"},
            )
        return await self._connector.writer(address, self._signer_private_key)

    def reset_cache(self) -> None:
        """Forget the probe outcome and the cached accessor."""
        self._verified = False
        self._deployed = None
        self._accessor = None
        logger.info("ledger.cache_reset")

    def status(self) -> LedgerStatus:
        """Report the probe outcome without triggering a probe."""
        valid = is_valid_address(self._raw_address)
        diagnostic = None
        if not valid:
            diagnostic = "Invalid contract address. Please check your configuration."
        elif self._deployed is False:
            diagnostic = NOT_DEPLOYED_DIAGNOSTIC
        return LedgerStatus(
            contract_address=canonical_address(self._raw_address) if valid else self._raw_address,
            chain_id=self.chain_id,
            verified=self._verified,
            deployed=self._deployed,
            diagnostic=diagnostic,
        )
