"""Conversion between human-unit amounts and integer smallest units.

Scaling is done on the decimal digits directly, never through the default
28-digit decimal context, so 30+ digit token amounts convert exactly.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation


def parse_amount(amount: str) -> Decimal | None:
    """Parse a human-unit amount string, returning None if it is not a finite number."""
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def to_smallest_unit(amount: str | Decimal, decimals: int) -> int:
    """Convert a human-unit amount to an integer amount of the smallest unit.

    Args:
        amount: Decimal string (or Decimal) such as ``"1.5"``.
        decimals: Decimal places of the asset.

    Returns:
        ``amount * 10**decimals`` as an int, computed exactly.

    Raises:
        ValueError: If ``amount`` is not a finite number, or carries more
            fractional digits than ``decimals`` allows.
    """
    if isinstance(amount, Decimal):
        value = amount if amount.is_finite() else None
    else:
        value = parse_amount(amount)
    if value is None:
        raise ValueError(f"Invalid amount: {amount!r}")

    sign, digits, exponent = value.as_tuple()
    coefficient = int("".join(map(str, digits)) or "0")
    shift = exponent + decimals
    if shift >= 0:
        scaled = coefficient * 10**shift
    else:
        scaled, remainder = divmod(coefficient, 10**-shift)
        if remainder:
            raise ValueError(
                f"Amount {amount} has more than {decimals} fractional digits"
            )
    return -scaled if sign else scaled


def from_smallest_unit(value: int, decimals: int) -> Decimal:
    """Convert an integer smallest-unit amount to human units.

    The result keeps exactly ``decimals`` fractional digits, so
    ``from_smallest_unit(100, 2) == Decimal("1.00")``.
    """
    digits = tuple(int(d) for d in str(abs(value)))
    return Decimal((1 if value < 0 else 0, digits, -decimals))
