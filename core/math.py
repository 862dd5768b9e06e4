# PATH: core/math.py
"""
Math utilities for ARBSCOPE.

Safe conversions and spread calculations (no float money).
"""

from decimal import Decimal, InvalidOperation
from typing import Union

NumberLike = Union[str, int, float, Decimal, None]

HUNDRED = Decimal("100")


def safe_decimal(value: NumberLike, default: Decimal = Decimal("0")) -> Decimal:
    """
    Safely convert value to Decimal.

    Args:
        value: Value to convert
        default: Default if conversion fails

    Returns:
        Decimal value
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        if isinstance(value, Decimal):
            result = value
        else:
            result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default

    if not result.is_finite():
        return default
    return result


def spread_pct(low_price: Decimal, high_price: Decimal) -> Decimal:
    """
    Relative spread in percent: (high - low) / low * 100.

    Returns 0 for non-positive low prices.
    """
    if low_price <= 0:
        return Decimal("0")
    return (high_price - low_price) / low_price * HUNDRED


def pct_of(amount: Decimal, pct: Decimal) -> Decimal:
    """pct percent of amount (pct_of(10000, 0.1) -> 10)."""
    return amount * pct / HUNDRED


def ratio_pct(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole in percent; 0 when whole is not positive."""
    if whole <= 0:
        return Decimal("0")
    return part / whole * HUNDRED


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))
