"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Read paths (views, discovery, access checks) catch these locally and fall
back to default values. Write paths let them reach the global handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    address: str
    post_id: int
    chain_id: int
    max_size_mb: int
    actual_size: int
    content_type: str
    category: str
    limit: int
    remaining: int
    reset_at: str
    retry_after: float
    revert_reason: str
    http_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails (malformed address, bad amount)."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class ConfigAppError(AppError):
    """Raised when ledger/chain configuration is missing or malformed."""


class WalletUnavailableAppError(AppError):
    """Raised when a write needs a signer and none is configured."""


class LedgerUnreachableAppError(AppError):
    """Raised when the ledger cannot be reached or answered with garbage."""


class LedgerNotDeployedAppError(LedgerUnreachableAppError):
    """Raised when the existence probe found no code at the contract address."""


class LedgerTransactionAppError(AppError):
    """Raised when a write transaction is rejected or reverts."""


class NotFoundAppError(AppError):
    """Raised when a referenced entity does not exist."""


class ConflictAppError(AppError):
    """Raised when a collaborator reports a uniqueness violation."""


class RateLimitedAppError(AppError):
    """Raised when a client exceeds its request budget."""


class StorageAppError(AppError):
    """Raised when the content storage service fails."""
