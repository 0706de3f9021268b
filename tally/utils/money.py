"""Money helpers.

All ledger arithmetic runs on ``Decimal`` so no binary floating point noise
ever reaches a balance. Values are stored as integer cents and rounded to
cents only at the output boundary, half away from zero.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0")
DEFAULT_EPSILON = Decimal("0.01")

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal. Floats go through repr, so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a monetary amount")
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, (int, str)):
        return Decimal(value)
    raise TypeError(f"Unsupported monetary value: {value!r}")


def round_money(value: Number) -> Decimal:
    """Round to cents, half away from zero (2.345 -> 2.35, -2.345 -> -2.35)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Number) -> int:
    """Convert an amount in currency units to integer cents."""
    return int(round_money(value) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a currency amount."""
    return (Decimal(cents) / 100).quantize(CENT)


def format_currency(amount: Number, currency: str = "USD") -> str:
    """Format for display: 1234.5 -> $1,234.50, -5 -> -$5.00."""
    value = round_money(amount)
    symbol = "$" if currency == "USD" else f"{currency} "
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
