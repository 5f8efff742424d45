from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from app.adapters.ledger.client_cache import LedgerClientCache
from app.api.dependencies import (
    get_access_gate,
    get_ledger,
    get_post_discovery,
    get_write_service,
    require_address,
)
from app.core.auth import verify_api_key
from app.core.errors import NotFoundAppError
from app.core.rate_limit import RateLimitTier, rate_limit
from app.schemas.requests import ContributionRequest, CreatePostRequest
from app.schemas.views import AccessView, PostListResponse, PostView, TransactionView
from app.services.access_gate import AccessGate
from app.services.ledger_writes import LedgerWriteService
from app.services.post_discovery import PostDiscovery

router = APIRouter(tags=["Posts"])

PostId = Annotated[int, Path(ge=1, description="Sequential post identifier")]


@router.get(
    "/posts",
    response_model=PostListResponse,
    dependencies=[Depends(rate_limit(RateLimitTier.READ))],
)
async def list_posts(
    discovery: Annotated[PostDiscovery, Depends(get_post_discovery)],
    ledger: Annotated[LedgerClientCache, Depends(get_ledger)],
) -> PostListResponse:
    """List every post on the ledger, newest first.

    Never fails on ledger trouble: an unavailable ledger yields an empty
    list, with a diagnostic when the contract is known to be missing.
    """
    posts = await discovery.list_all_posts()
    return PostListResponse(posts=posts, count=len(posts), diagnostic=ledger.status().diagnostic)


@router.get(
    "/posts/{post_id}",
    response_model=PostView,
    dependencies=[Depends(rate_limit(RateLimitTier.READ))],
)
async def get_post(
    post_id: PostId,
    discovery: Annotated[PostDiscovery, Depends(get_post_discovery)],
) -> PostView:
    post = await discovery.get_post(post_id)
    if post is None:
        raise NotFoundAppError(
            code="post_not_found",
            message="Post not found",
            details={"post_id": post_id},
        )
    return post


@router.get(
    "/posts/{post_id}/access",
    response_model=AccessView,
    dependencies=[Depends(rate_limit(RateLimitTier.READ))],
)
async def check_access(
    post_id: PostId,
    gate: Annotated[AccessGate, Depends(get_access_gate)],
    subscriber: str = Query(..., description="Address of the viewer"),
    creator: str = Query(..., description="Address of the post's creator"),
) -> AccessView:
    """Whether ``subscriber`` may view the post (fails closed on ledger errors)."""
    subscriber_address = require_address(subscriber, "subscriber")
    creator_address = require_address(creator, "creator")
    allowed = await gate.can_access(post_id, subscriber_address, creator_address)
    return AccessView(
        post_id=post_id,
        subscriber=subscriber_address,
        creator=creator_address,
        can_access=allowed,
    )


@router.post(
    "/posts",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(RateLimitTier.WRITE)), Depends(verify_api_key)],
)
async def create_post(
    body: CreatePostRequest,
    writes: Annotated[LedgerWriteService, Depends(get_write_service)],
) -> TransactionView:
    """Publish a post owned by the signing wallet."""
    return await writes.add_post(body.content_ref, body.is_free)


@router.post(
    "/posts/{post_id}/contributions",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(RateLimitTier.WRITE)), Depends(verify_api_key)],
)
async def contribute(
    post_id: PostId,
    body: ContributionRequest,
    writes: Annotated[LedgerWriteService, Depends(get_write_service)],
) -> TransactionView:
    """Tip a post from the signing wallet."""
    return await writes.contribute(post_id, body.amount)
