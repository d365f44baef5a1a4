"""
Exact base-10 helpers for every amount the renderer touches.

Amounts stay unrounded through the whole computation; `quantize` is only
meant for display and for comparing results against expected figures.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Numeric = Union[int, float, str, Decimal]

ZERO = Decimal(0)
HUNDRED = Decimal(100)


def to_decimal(value: Numeric) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def safe_div(numerator: Decimal, denominator: Decimal, fallback: Decimal = ZERO) -> Decimal:
    """Divide, returning `fallback` instead of raising when the denominator is zero."""
    if denominator == ZERO:
        return fallback
    return numerator / denominator


def quantize(value: Numeric, precision: int = 2) -> Decimal:
    places = Decimal(1).scaleb(-int(precision))
    return to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)
