"""Pydantic schemas for write request bodies."""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, field_validator

from app.utils.addresses import canonical_address, is_valid_address

_WEI_PATTERN = r"^\d+$"


def _checked_address(value: str) -> str:
    if not is_valid_address(value):
        raise ValueError("Invalid address format")
    return canonical_address(value)


# Accepts any case, stores the checksum form.
LedgerAddress = Annotated[str, AfterValidator(_checked_address)]


class RegisterCreatorRequest(BaseModel):
    """Register (or update) the signer as a creator."""

    name: str = Field(..., min_length=2, max_length=50, description="Display name.")
    subscription_price: str = Field(
        ...,
        pattern=_WEI_PATTERN,
        description="Subscription price in wei, as a decimal string.",
    )

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 2:
            raise ValueError("Name must be at least 2 characters")
        return stripped


class CreatePostRequest(BaseModel):
    """Publish a post referencing stored content."""

    content_ref: str = Field(
        ...,
        min_length=1,
        description="Content identifier, ipfs:// URI or gateway URL.",
    )
    is_free: bool = Field(True, description="False makes the post subscriber-only.")


class ContributionRequest(BaseModel):
    """Tip a post."""

    amount: str = Field(..., pattern=_WEI_PATTERN, description="Tip in wei.")

    @field_validator("amount")
    @classmethod
    def _positive(cls, value: str) -> str:
        if int(value) <= 0:
            raise ValueError("Amount must be greater than zero")
        return value


class SubscribeRequest(BaseModel):
    """Pay for a subscription to a creator."""

    creator_address: LedgerAddress
    amount: str = Field(..., pattern=_WEI_PATTERN, description="Payment in wei.")


class AutoPayDepositRequest(BaseModel):
    """Top up the auto-pay balance kept for a creator."""

    creator_address: LedgerAddress
    amount: str = Field(..., pattern=_WEI_PATTERN, description="Deposit in wei.")


class RenewSubscriptionRequest(BaseModel):
    """Renew a subscription from the auto-pay balance."""

    creator_address: LedgerAddress
