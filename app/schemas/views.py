"""Pydantic schemas for ledger-derived views.

Amounts are wei rendered as decimal strings so JSON clients never lose
precision; conversion to ether is left to the UI.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PostView(BaseModel):
    """A post resolved from the ledger, enriched with its creator's name."""

    id: int = Field(..., ge=1, description="Sequential post identifier.")
    creator: str = Field(..., description="Checksummed creator address.")
    creator_name: str = Field("Anonymous", description="Creator display name at read time.")
    content_ref: str = Field(..., description="Content identifier (IPFS CID) of the post body.")
    content_url: str = Field(..., description="Gateway URL for the content identifier.")
    is_free: bool = Field(..., description="True when anyone may view the post.")
    is_premium: bool = Field(..., description="Inverse of is_free, for convenience.")
    contributions: str = Field("0", description="Accumulated tips in wei.")
    title: str = Field(..., description="Display title derived from the id.")


class PostListResponse(BaseModel):
    """A listing of posts, most recent (highest id) first."""

    posts: list[PostView] = Field(default_factory=list)
    count: int = Field(0, ge=0)
    diagnostic: str | None = Field(
        None,
        description="Actionable hint when the ledger is known to be unavailable.",
    )


class ProfileView(BaseModel):
    """Creator profile; unregistered addresses get the zeroed default."""

    address: str
    name: str = ""
    subscription_price: str = Field("0", description="Subscription price in wei.")
    post_ids: list[int] = Field(default_factory=list)
    is_registered: bool = False
    earnings: str = Field("0", description="Withdrawable earnings in wei.")


class StatsView(BaseModel):
    """Aggregate creator statistics.

    ``total_supporters`` is always 0: the ledger keeps no per-supporter index.
    """

    total_tips: str = "0"
    total_supporters: int = 0
    total_posts: int = 0


class SubscriptionView(BaseModel):
    """Subscription status with activity recomputed at read time."""

    subscriber: str
    creator: str
    expiry: int = Field(0, description="Expiry as UNIX seconds (0 when never subscribed).")
    auto_pay_balance: str = Field("0", description="Auto-pay balance in wei.")
    is_active: bool = False
    days_remaining: int = 0


class AccessView(BaseModel):
    """Answer to "may this subscriber view this post"."""

    post_id: int
    subscriber: str
    creator: str
    can_access: bool


class TransactionView(BaseModel):
    """Receipt of a mined write transaction."""

    action: str
    tx_hash: str
    block_number: int
    gas_used: int
    status: int


class UploadView(BaseModel):
    """Result of storing a blob with the content storage service."""

    content_id: str
    url: str
    size: int
    content_type: str
    category: str


class LedgerStatusView(BaseModel):
    """Configuration and probe outcome of the ledger connection."""

    contract_address: str
    chain_id: int
    verified: bool
    deployed: bool | None
    diagnostic: str | None = None
