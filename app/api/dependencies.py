"""FastAPI dependencies resolving the application-owned collaborators.

The ledger client cache, rate limiter and content store live on
``app.state`` (set up by the application factory); services are cheap
wrappers built per request around them.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from app.adapters.ledger.client_cache import LedgerClientCache
from app.adapters.storage.base import AbstractContentStore
from app.core.errors import ValidationAppError
from app.services.access_gate import AccessGate
from app.services.ledger_writes import LedgerWriteService
from app.services.post_discovery import PostDiscovery
from app.services.view_assembler import ViewAssembler
from app.utils.addresses import canonical_address, is_valid_address


def get_ledger(request: Request) -> LedgerClientCache:
    return request.app.state.ledger


def get_content_store(request: Request) -> AbstractContentStore:
    return request.app.state.content_store


def get_post_discovery(ledger: Annotated[LedgerClientCache, Depends(get_ledger)]) -> PostDiscovery:
    return PostDiscovery(ledger)


def get_view_assembler(
    ledger: Annotated[LedgerClientCache, Depends(get_ledger)],
    discovery: Annotated[PostDiscovery, Depends(get_post_discovery)],
) -> ViewAssembler:
    return ViewAssembler(ledger, discovery)


def get_access_gate(ledger: Annotated[LedgerClientCache, Depends(get_ledger)]) -> AccessGate:
    return AccessGate(ledger)


def get_write_service(ledger: Annotated[LedgerClientCache, Depends(get_ledger)]) -> LedgerWriteService:
    return LedgerWriteService(ledger)


def require_address(value: str, field: str) -> str:
    """Validate an address taken from the path or query string.

    Raises:
        ValidationAppError: 400 with the offending field name.
    """
    if not is_valid_address(value):
        raise ValidationAppError(
            code="invalid_address",
            message=f"Invalid {field} address",
            details={"hint": "Expected 0x followed by 40 hexadecimal characters", "context": {"field": field}},
        )
    return canonical_address(value)
