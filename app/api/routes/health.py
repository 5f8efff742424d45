from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.adapters.ledger.client_cache import LedgerClientCache
from app.api.dependencies import get_ledger
from app.schemas.views import LedgerStatusView

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ledger", response_model=LedgerStatusView)
def ledger_health(ledger: Annotated[LedgerClientCache, Depends(get_ledger)]) -> LedgerStatusView:
    """Report the contract configuration and existence-probe outcome.

    Does not trigger a probe; ``deployed`` stays ``null`` until the first
    ledger read (or when the probe could not reach the node).
    """
    snapshot = ledger.status()
    return LedgerStatusView(
        contract_address=snapshot.contract_address,
        chain_id=snapshot.chain_id,
        verified=snapshot.verified,
        deployed=snapshot.deployed,
        diagnostic=snapshot.diagnostic,
    )
