"""ABI fragment of the creator ledger contract.

Only the functions this service calls are listed. ``creators`` is the
auto-generated public struct getter, which omits the ``postIds`` array.
"""

from __future__ import annotations

from typing import Any


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[tuple[str, str]],
    mutability: str,
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t, "internalType": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t, "internalType": t} for n, t in outputs],
        "stateMutability": mutability,
    }


CONTRACT_ABI: list[dict[str, Any]] = [
    _fn(
        "creators",
        [("", "address")],
        [("wallet", "address"), ("name", "string"), ("subscriptionPrice", "uint256"), ("isRegistered", "bool")],
        "view",
    ),
    _fn(
        "posts",
        [("", "uint256")],
        [
            ("id", "uint256"),
            ("creator", "address"),
            ("ipfsHash", "string"),
            ("isFree", "bool"),
            ("contributions", "uint256"),
        ],
        "view",
    ),
    _fn(
        "subscriptions",
        [("", "address"), ("", "address")],
        [("expiry", "uint256"), ("autoPayBalance", "uint256"), ("isActive", "bool")],
        "view",
    ),
    _fn("creatorEarnings", [("", "address")], [("", "uint256")], "view"),
    _fn("isSubscribed", [("subscriber", "address"), ("creator", "address")], [("", "bool")], "view"),
    _fn("registerCreator", [("name", "string"), ("subscriptionPrice", "uint256")], [], "nonpayable"),
    _fn("addPost", [("ipfsHash", "string"), ("isFree", "bool")], [], "nonpayable"),
    _fn("contribute", [("postId", "uint256")], [], "payable"),
    _fn("subscribe", [("creator", "address")], [], "payable"),
    _fn("depositAutoPay", [("creator", "address")], [], "payable"),
    _fn("renewSubscription", [("creator", "address")], [], "nonpayable"),
    _fn("withdrawEarnings", [], [], "nonpayable"),
]
