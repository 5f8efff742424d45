"""Helpers for content identifiers (IPFS CIDs) referenced by posts."""

from __future__ import annotations

import re

# CIDv0: "Qm" + 44 base58 characters
_CID_V0_RE = re.compile(r"^Qm[1-9A-HJ-NP-Za-km-z]{44}$")
# CIDv1: base32 ("b...") or base58btc ("z...")
_CID_V1_RE = re.compile(r"^(b[a-z2-7]{58}|z[1-9A-HJ-NP-Za-km-z]{48,})$")


def normalize_content_ref(value: str) -> str:
    """Strip ``ipfs://`` and gateway prefixes, leaving the bare identifier.

    >>> normalize_content_ref("ipfs://QmHash")
    'QmHash'
    >>> normalize_content_ref("https://gateway.pinata.cloud/ipfs/QmHash")
    'QmHash'
    """
    ref = value.strip()
    if ref.startswith("ipfs://"):
        ref = ref[len("ipfs://"):]
    elif "/ipfs/" in ref:
        ref = ref.split("/ipfs/", 1)[1]
    return ref.strip("/")


def is_valid_cid(value: str) -> bool:
    """True for well-formed CIDv0 or CIDv1 strings."""
    return bool(_CID_V0_RE.match(value) or _CID_V1_RE.match(value))


def gateway_url(content_ref: str, gateway: str) -> str:
    """Public URL of ``content_ref`` on ``gateway`` (empty for an empty ref)."""
    if not content_ref:
        return ""
    return f"{gateway.rstrip('/')}/{normalize_content_ref(content_ref)}"
