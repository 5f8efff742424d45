"""Ledger address validation and canonicalization.

Every address that is compared, used as a lookup argument, or used as a map
key goes through this module first, so two case variants of one address
always compare equal.
"""

from __future__ import annotations

import re

from web3 import Web3

from app.core.errors import ValidationAppError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(value: object) -> bool:
    """Strict 20-byte hex check (``0x`` prefix plus 40 hex characters).

    Mixed case is accepted without verifying the EIP-55 checksum; the
    checksum form is produced by :func:`canonical_address`.
    """
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def canonical_address(value: str) -> str:
    """Return the EIP-55 checksum form of ``value``.

    Raises:
        ValidationAppError: If ``value`` is not a 20-byte hex address.
    """
    if not is_valid_address(value):
        raise ValidationAppError(
            code="invalid_address",
            message="Invalid address format",
            details={"hint": "Expected 0x followed by 40 hexadecimal characters"},
        )
    return Web3.to_checksum_address(value.lower())


def address_key(value: str) -> str:
    """Lowercase form used for storage keys and equality checks."""
    return canonical_address(value).lower()


def same_address(left: str | None, right: str | None) -> bool:
    """Case-insensitive address equality; malformed input never matches."""
    if not is_valid_address(left) or not is_valid_address(right):
        return False
    return left.lower() == right.lower()  # type: ignore[union-attr]


def is_zero_address(value: str | None) -> bool:
    """True for the sentinel used by the ledger for empty slots."""
    return not value or same_address(value, ZERO_ADDRESS)
