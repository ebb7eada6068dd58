from __future__ import annotations

from ..domain import Operation, PermissionGrant, Quote, SelectionEntry, Swap


def build_operations(entry: SelectionEntry, quote: Quote) -> list[Operation]:
    """Turn one quoted selection into the calls that realize it.

    Native assets are sent along with the swap call. Any other asset first
    grants the router an allowance of exactly the swapped amount, never an
    unlimited one.
    """
    swap = Swap(
        target=quote.router_address,
        data=quote.calldata,
        value=quote.native_value if entry.asset.is_native else 0,
    )
    if entry.asset.is_native:
        return [swap]

    grant = PermissionGrant(
        asset=entry.asset,
        spender=quote.router_address,
        amount=quote.amount_in,
    )
    return [grant, swap]
