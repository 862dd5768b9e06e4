# PATH: core/format_money.py
"""
Safe money formatting utilities for ARBSCOPE.

No float money: values are str or Decimal. Formatting never raises on
numeric input, so reports and playback logs can always be rendered.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

MoneyLike = Union[str, Decimal, int, float, None]


def _to_decimal(value: MoneyLike) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(1 if value else 0)
    if isinstance(value, str) and not value.strip():
        return Decimal("0")
    return Decimal(str(value))


def format_money(value: MoneyLike, decimals: int = 6) -> str:
    """
    Format a money value to a fixed number of decimal places.

    Uses ROUND_HALF_UP (0.005 -> 0.01 with 2 decimals).
    Unparseable input formats as zero.

    Example:
        >>> format_money("123.45")
        '123.450000'
        >>> format_money(None, decimals=2)
        '0.00'
    """
    zero = f"0.{'0' * decimals}" if decimals > 0 else "0"
    try:
        dec_value = _to_decimal(value)
        if not dec_value.is_finite():
            return zero
        with localcontext() as ctx:
            ctx.prec = 50
            quantize_str = "0." + "0" * decimals if decimals > 0 else "0"
            rounded = dec_value.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)
        return f"{rounded:.{decimals}f}"
    except (InvalidOperation, ValueError, TypeError):
        return zero


def format_usd(value: MoneyLike) -> str:
    """
    Format a USD amount for display: "$1,234.56" / "-$12.00".
    """
    text = format_money(value, decimals=2)
    negative = text.startswith("-")
    whole, _, frac = text.lstrip("-").partition(".")
    grouped = f"{int(whole):,}"
    return f"{'-' if negative else ''}${grouped}.{frac}"


def format_price(value: MoneyLike, significant: int = 6) -> str:
    """
    Format a token price keeping significant digits for sub-cent tokens.

    64200.5 -> "64200.50", 0.0000075123 -> "0.00000751230"
    """
    try:
        dec_value = _to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return "0.00"
    if not dec_value.is_finite() or dec_value == 0:
        return "0.00"
    if abs(dec_value) >= 1:
        return format_money(dec_value, decimals=2)
    # leading zeros after the point + requested significant digits
    leading = -dec_value.adjusted() - 1
    return format_money(dec_value, decimals=leading + significant)


def format_pct(value: MoneyLike, decimals: int = 2) -> str:
    """
    Format percentage value (0.78 -> "0.78%").
    """
    return f"{format_money(value, decimals)}%"
