"""Domain models for swap bundles."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Union


@dataclass(frozen=True)
class Asset:
    """A fungible token, or the chain's native unit when ``is_native`` is set."""

    address: str
    symbol: str
    decimals: int
    price_usd: Decimal | None = None
    is_native: bool = False

    def with_price(self, price_usd: Decimal | None) -> Asset:
        return replace(self, price_usd=price_usd)


@dataclass(frozen=True)
class SelectionEntry:
    """An asset picked for swapping with the amount in human units."""

    asset: Asset
    amount: str
    is_max: bool = False


@dataclass(frozen=True)
class Quote:
    """Routing service answer for one selection.

    ``expected_output`` and ``min_output`` are in the target asset's smallest
    unit. ``native_value`` is zero unless the source asset is native.
    """

    router_address: str
    calldata: str
    native_value: int
    amount_in: int
    expected_output: int
    min_output: int
    price_impact: Decimal = Decimal(0)


@dataclass(frozen=True)
class PermissionGrant:
    """ERC-20 allowance of ``amount`` smallest units of ``asset`` to ``spender``."""

    asset: Asset
    spender: str
    amount: int


@dataclass(frozen=True)
class Swap:
    target: str
    data: str
    value: int = 0


Operation = Union[PermissionGrant, Swap]


@dataclass(frozen=True)
class SafeTransaction:
    """A single call as handed to the wallet layer."""

    to: str
    value: int
    data: bytes

    def to_dict(self) -> dict[str, object]:
        return {"to": self.to, "value": str(self.value), "data": "0x" + self.data.hex()}


@dataclass(frozen=True)
class QuoteFailure:
    """A selection that could not be quoted and was left out of the bundle."""

    asset: Asset
    amount: str
    reason: str
    detail: str = ""


@dataclass
class Bundle:
    """Ordered operations for one atomic submission plus summary figures."""

    target: Asset
    operations: list[Operation]
    total_input_value: Decimal
    total_estimated_output: Decimal
    total_min_output: Decimal
    quoted: list[tuple[SelectionEntry, Quote]] = field(default_factory=list)
    failures: list[QuoteFailure] = field(default_factory=list)

    @property
    def swap_count(self) -> int:
        return sum(1 for op in self.operations if isinstance(op, Swap))

    @property
    def requested_count(self) -> int:
        return len(self.quoted) + len(self.failures)

    def to_dict(self) -> dict[str, object]:
        """Convert the bundle to a JSON-friendly dictionary."""
        return {
            "target": self.target.symbol,
            "total_input_value_usd": str(self.total_input_value),
            "total_estimated_output": str(self.total_estimated_output),
            "total_min_output": str(self.total_min_output),
            "swaps": [
                {
                    "asset": entry.asset.symbol,
                    "amount": entry.amount,
                    "router": quote.router_address,
                    "expected_output": str(quote.expected_output),
                    "min_output": str(quote.min_output),
                    "price_impact": str(quote.price_impact),
                }
                for entry, quote in self.quoted
            ],
            "skipped": [
                {"asset": f.asset.symbol, "reason": f.reason, "detail": f.detail}
                for f in self.failures
            ],
        }
