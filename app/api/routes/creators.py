from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.adapters.ledger.client_cache import LedgerClientCache
from app.api.dependencies import (
    get_ledger,
    get_post_discovery,
    get_view_assembler,
    get_write_service,
    require_address,
)
from app.core.auth import verify_api_key
from app.core.rate_limit import RateLimitTier, rate_limit
from app.schemas.requests import RegisterCreatorRequest
from app.schemas.views import PostListResponse, ProfileView, StatsView, TransactionView
from app.services.ledger_writes import LedgerWriteService
from app.services.post_discovery import PostDiscovery
from app.services.view_assembler import ViewAssembler

router = APIRouter(tags=["Creators"])


@router.post(
    "/creators",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(RateLimitTier.REGISTER)), Depends(verify_api_key)],
)
async def register_creator(
    body: RegisterCreatorRequest,
    writes: Annotated[LedgerWriteService, Depends(get_write_service)],
) -> TransactionView:
    """Register the signing wallet as a creator, or update its profile.

    Args:
        body: Display name (2-50 characters) and subscription price in wei.

    Returns:
        TransactionView: Receipt of the mined registration transaction.
    """
    return await writes.register_creator(body.name, body.subscription_price)


@router.post(
    "/creators/withdrawals",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(RateLimitTier.WRITE)), Depends(verify_api_key)],
)
async def withdraw_earnings(
    writes: Annotated[LedgerWriteService, Depends(get_write_service)],
) -> TransactionView:
    """Withdraw the signing creator's accumulated earnings."""
    return await writes.withdraw_earnings()


@router.get(
    "/creators/{address}",
    response_model=ProfileView,
    dependencies=[Depends(rate_limit(RateLimitTier.READ))],
)
async def get_creator_profile(
    address: str,
    views: Annotated[ViewAssembler, Depends(get_view_assembler)],
) -> ProfileView:
    """Creator profile; unregistered addresses get the zeroed default."""
    return await views.get_creator_profile(require_address(address, "creator"))


@router.get(
    "/creators/{address}/stats",
    response_model=StatsView,
    dependencies=[Depends(rate_limit(RateLimitTier.READ))],
)
async def get_creator_stats(
    address: str,
    views: Annotated[ViewAssembler, Depends(get_view_assembler)],
) -> StatsView:
    return await views.get_creator_stats(require_address(address, "creator"))


@router.get(
    "/creators/{address}/posts",
    response_model=PostListResponse,
    dependencies=[Depends(rate_limit(RateLimitTier.READ))],
)
async def list_creator_posts(
    address: str,
    discovery: Annotated[PostDiscovery, Depends(get_post_discovery)],
    ledger: Annotated[LedgerClientCache, Depends(get_ledger)],
) -> PostListResponse:
    posts = await discovery.list_posts_by_creator(require_address(address, "creator"))
    return PostListResponse(posts=posts, count=len(posts), diagnostic=ledger.status().diagnostic)
