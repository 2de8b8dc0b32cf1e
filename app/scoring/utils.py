"""
Numeric Utilities
app/scoring/utils.py

Precision-safe rounding and ratio helpers shared by the scoring engine.
Rounding is half-up toward +infinity so 2.5 -> 3 and -2.5 -> -2.
"""

import math
from decimal import Decimal, ROUND_FLOOR
from typing import List, Union

Number = Union[int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal through its string form."""
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return int((to_decimal(value) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def clamp(value: Number, min_val: Number = 0, max_val: Number = 100) -> Number:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def is_finite_number(value) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def percentage(numerator: Number, denominator: Number) -> int:
    """
    round(numerator / denominator x 100) with zero-division protection.

    Returns 0 if denominator <= 0.
    """
    if denominator <= 0:
        return 0
    return round_half_up(to_decimal(numerator) / to_decimal(denominator) * 100)


def rounded_mean(values: List[Number]) -> int:
    """Rounded arithmetic mean; callers guarantee a non-empty list."""
    if not values:
        raise ValueError("values must not be empty")
    total = sum(to_decimal(v) for v in values)
    return round_half_up(total / Decimal(len(values)))


def as_number(value: Decimal) -> Union[int, float]:
    """Plain int when integral, float otherwise."""
    return int(value) if value == value.to_integral_value() else float(value)
