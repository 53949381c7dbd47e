"""
Number and date formatting for API payloads.

Money and percentages leave the API as fixed-decimal strings so that the
values displayed match the values exported; counts leave as ints.
"""
import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce DuckDB values (Decimal, int, str, None) to float."""
    if value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_fixed(value: Any, digits: int = 2) -> str:
    """
    Format a number with a fixed count of decimals, rounding half away from zero.

    None, NaN and non-numeric input format as zero.

    Examples:
        >>> to_fixed(2.675, 2)
        '2.68'
        >>> to_fixed(None, 1)
        '0.0'
    """
    number = to_number(value)
    try:
        quantized = Decimal(repr(number)).quantize(
            Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP
        )
    except InvalidOperation:
        return f"{number:.{digits}f}"
    if quantized == 0:
        quantized = abs(quantized)
    return f"{quantized:.{digits}f}"


def to_fixed_or_none(value: Any, digits: int = 2) -> Optional[str]:
    """Like :func:`to_fixed`, but keeps missing values as None."""
    if value is None:
        return None
    return to_fixed(value, digits)


def round_half_up(value: Any, digits: int = 1) -> float:
    return float(to_fixed(value, digits))


def growth_pct(current: Any, previous: Any) -> float:
    """Percent growth rounded to one decimal; 0 when there is no positive baseline."""
    current = to_number(current)
    previous = to_number(previous)
    if previous <= 0:
        return 0
    return round_half_up((current - previous) / previous * 100, 1)


def pct_change_str(current: Any, previous: Any) -> str:
    """Percent change as a one-decimal string; "0.0" when the baseline is zero."""
    current = to_number(current)
    previous = to_number(previous)
    if not previous:
        return "0.0"
    return to_fixed((current - previous) / previous * 100, 1)


def format_currency(value: Any, show_cents: bool = True) -> str:
    """
    Format a USD amount, e.g. ``$1,234.56``.

    Missing or NaN values format as ``$0.00``.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "$0.00"
    number = to_number(value)
    digits = 2 if show_cents else 0
    text = to_fixed(abs(number), digits)
    whole, _, cents = text.partition(".")
    formatted = f"{int(whole):,}" + (f".{cents}" if cents else "")
    sign = "-" if number < 0 and float(text) != 0 else ""
    return f"{sign}${formatted}"


def format_number(value: Any) -> str:
    """Format an integer count with thousands separators."""
    return f"{int(round(to_number(value))):,}"


def iso_date(value: Any) -> Optional[str]:
    """Render a date-like value as YYYY-MM-DD."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).split("T")[0].split(" ")[0]
