"""Exact decimal helpers for currency"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, str, float]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without inheriting binary float noise (0.1 -> Decimal("0.1"))"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_cents(value: Number) -> Decimal:
    """Round half away from zero to 2 decimal places (1.005 -> 1.01, -1.005 -> -1.01)"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_usd(value: Number) -> str:
    return f"${round_cents(value)}"
