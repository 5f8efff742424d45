from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_view_assembler, get_write_service, require_address
from app.core.auth import verify_api_key
from app.core.rate_limit import RateLimitTier, rate_limit
from app.schemas.requests import (
    AutoPayDepositRequest,
    RenewSubscriptionRequest,
    SubscribeRequest,
)
from app.schemas.views import SubscriptionView, TransactionView
from app.services.ledger_writes import LedgerWriteService
from app.services.view_assembler import ViewAssembler

router = APIRouter(tags=["Subscriptions"])

_WRITE_DEPENDENCIES = [Depends(rate_limit(RateLimitTier.WRITE)), Depends(verify_api_key)]


@router.get(
    "/subscriptions",
    response_model=SubscriptionView,
    dependencies=[Depends(rate_limit(RateLimitTier.READ))],
)
async def get_subscription(
    views: Annotated[ViewAssembler, Depends(get_view_assembler)],
    subscriber: str = Query(..., description="Subscriber address"),
    creator: str = Query(..., description="Creator address"),
) -> SubscriptionView:
    """Subscription status, with ``is_active`` recomputed from the expiry."""
    return await views.get_subscription_view(
        require_address(subscriber, "subscriber"),
        require_address(creator, "creator"),
    )


@router.post(
    "/subscriptions",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    dependencies=_WRITE_DEPENDENCIES,
)
async def subscribe(
    body: SubscribeRequest,
    writes: Annotated[LedgerWriteService, Depends(get_write_service)],
) -> TransactionView:
    """Subscribe the signing wallet to a registered creator.

    Raises:
        NotFoundAppError: 404 if the creator is not registered.
    """
    return await writes.subscribe(body.creator_address, body.amount)


@router.post(
    "/subscriptions/autopay",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    dependencies=_WRITE_DEPENDENCIES,
)
async def deposit_auto_pay(
    body: AutoPayDepositRequest,
    writes: Annotated[LedgerWriteService, Depends(get_write_service)],
) -> TransactionView:
    return await writes.deposit_auto_pay(body.creator_address, body.amount)


@router.post(
    "/subscriptions/renewals",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    dependencies=_WRITE_DEPENDENCIES,
)
async def renew_subscription(
    body: RenewSubscriptionRequest,
    writes: Annotated[LedgerWriteService, Depends(get_write_service)],
) -> TransactionView:
    return await writes.renew_subscription(body.creator_address)
