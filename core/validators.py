"""
Input validation functions for API parameters.

Validators for required bounds raise ValidationError on invalid input.
Validators for optional selectors (period, sort column) fall back to a
default instead, matching how the dashboard treats unknown choices.
"""

import re
from datetime import date, datetime
from typing import Iterable, Optional, Tuple

from core.exceptions import ValidationError
from core.filters import DEFAULT_PERIOD, DEFAULT_TIMEFRAME, PERIOD_LABELS, TIMEFRAME_ALIASES, TIMEFRAMES


# Maximum allowed values
MAX_LIMIT = 500
MAX_PAGE_SIZE = 200
MAX_SEARCH_LENGTH = 200
MAX_DAY_WINDOW = 3650
MAX_MONTHS = 120

VALID_SORT_ORDERS = {"asc", "desc"}
VALID_INVENTORY_STATUSES = {"CRITICAL", "LOW", "MODERATE", "SUFFICIENT"}

_DAY_WINDOW_RE = re.compile(r"^(\d+)d$")
_DOMAIN_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.\-_]*$")


def validate_date_string(
    value: str,
    field: str = "date",
    format: str = "%Y-%m-%d"
) -> date:
    """
    Validate and parse a date string.

    Args:
        value: Date string to validate
        field: Field name for error messages
        format: Expected date format (default: YYYY-MM-DD)

    Returns:
        Parsed date object

    Raises:
        ValidationError: If date is invalid or in wrong format
    """
    if not value:
        raise ValidationError(field, "Date is required", value)

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    try:
        return datetime.strptime(value, format).date()
    except ValueError:
        raise ValidationError(
            field,
            f"Invalid date format. Expected {format}",
            value
        )


def validate_date_range(start_date: str, end_date: str) -> Tuple[date, date]:
    """
    Validate a custom date range.

    Raises:
        ValidationError: If either date is invalid or start is after end
    """
    start = validate_date_string(start_date, "startDate")
    end = validate_date_string(end_date, "endDate")

    if start > end:
        raise ValidationError(
            "date_range",
            "Start date must be before or equal to end date",
            f"{start_date} to {end_date}"
        )

    return start, end


def validate_limit(
    value: int,
    field: str = "limit",
    min_value: int = 1,
    max_value: int = MAX_LIMIT
) -> int:
    """
    Validate a limit/count parameter.

    Args:
        value: Limit value to validate
        field: Field name for error messages
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Validated limit

    Raises:
        ValidationError: If limit is out of range
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Must be an integer", value)

    if value < min_value:
        raise ValidationError(
            field,
            f"Must be at least {min_value}",
            value
        )

    if value > max_value:
        raise ValidationError(
            field,
            f"Cannot exceed {max_value}",
            value
        )

    return value


def validate_page(value: int, field: str = "page") -> int:
    """Validate a 1-based page number."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Must be an integer", value)
    if value < 1:
        raise ValidationError(field, "Must be at least 1", value)
    return value


def validate_page_size(
    value: int,
    field: str = "pageSize",
    max_value: int = MAX_PAGE_SIZE
) -> int:
    """Validate a page size between 1 and ``max_value``."""
    return validate_limit(value, field=field, min_value=1, max_value=max_value)


def validate_sort_order(value: Optional[str], field: str = "sortOrder") -> str:
    """
    Validate a sort direction.

    Args:
        value: ``asc`` or ``desc`` in any case; empty means ``desc``
        field: Field name for error messages

    Returns:
        Lowercase sort direction

    Raises:
        ValidationError: If the direction is neither asc nor desc
    """
    if value is None or value == "":
        return "desc"

    normalized = value.strip().lower()
    if normalized not in VALID_SORT_ORDERS:
        raise ValidationError(field, "Must be 'asc' or 'desc'", value)
    return normalized


def validate_sort_by(value: Optional[str], allowed: Iterable[str], default: str) -> str:
    """Return ``value`` when it is a whitelisted sort key, otherwise ``default``."""
    if value and value in set(allowed):
        return value
    return default


def validate_amount_range(
    min_amount: Optional[float],
    max_amount: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """
    Validate optional order amount bounds.

    Raises:
        ValidationError: If a bound is negative or min exceeds max
    """
    if min_amount is not None and min_amount < 0:
        raise ValidationError("minAmount", "Must not be negative", min_amount)
    if max_amount is not None and max_amount < 0:
        raise ValidationError("maxAmount", "Must not be negative", max_amount)
    if min_amount is not None and max_amount is not None and min_amount > max_amount:
        raise ValidationError(
            "amount_range",
            "minAmount must be less than or equal to maxAmount",
            f"{min_amount} to {max_amount}"
        )
    return min_amount, max_amount


def validate_search(value: Optional[str], field: str = "search") -> Optional[str]:
    """
    Normalize a free-text search term.

    Returns:
        Stripped term, or None when empty

    Raises:
        ValidationError: If the term is too long
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > MAX_SEARCH_LENGTH:
        raise ValidationError(
            field,
            f"Cannot exceed {MAX_SEARCH_LENGTH} characters",
            f"{len(value)} characters"
        )
    return value


def validate_period(value: Optional[str], default: str = DEFAULT_PERIOD) -> str:
    """Return a known period shortcut, falling back to ``default``."""
    if value:
        value = value.strip().lower()
        if value in PERIOD_LABELS:
            return value
    return default


def validate_timeframe(value: Optional[str], default: str = DEFAULT_TIMEFRAME) -> str:
    """Return a known report timeframe (aliases resolved), falling back to ``default``."""
    if value:
        value = TIMEFRAME_ALIASES.get(value, value)
        if value in TIMEFRAMES:
            return value
    return default


def validate_day_range(value: Optional[str], field: str = "range") -> str:
    """
    Validate an ``Nd`` report window such as ``90d``.

    Args:
        value: Range string; empty means the default 365 days
        field: Field name for error messages

    Returns:
        Normalized range string

    Raises:
        ValidationError: If the format is wrong or the day count is out of range
    """
    if value is None or value == "":
        return "365d"

    match = _DAY_WINDOW_RE.match(value.strip())
    if not match:
        raise ValidationError(field, "Expected a day count such as '90d'", value)

    days = int(match.group(1))
    if not 1 <= days <= MAX_DAY_WINDOW:
        raise ValidationError(field, f"Must be between 1 and {MAX_DAY_WINDOW} days", value)

    return f"{days}d"


def validate_months(value: int, field: str = "months") -> int:
    """Validate a month count for period-over-period comparisons."""
    return validate_limit(value, field=field, min_value=1, max_value=MAX_MONTHS)


def validate_domain_key(value: str, field: str = "domain") -> str:
    """
    Validate a company domain key.

    Raises:
        ValidationError: If the key is empty or contains unexpected characters
    """
    if not value or not value.strip():
        raise ValidationError(field, "Domain is required")

    value = value.strip().lower()
    if not _DOMAIN_KEY_RE.match(value):
        raise ValidationError(field, "Contains invalid characters", value)
    return value


def validate_inventory_status(value: Optional[str], field: str = "inventoryStatus") -> Optional[str]:
    """
    Validate an inventory status filter.

    Returns:
        Uppercase status or None when not given

    Raises:
        ValidationError: If the status is not a known inventory status
    """
    if value is None or value == "":
        return None

    normalized = value.strip().upper()
    if normalized not in VALID_INVENTORY_STATUSES:
        raise ValidationError(
            field,
            f"Must be one of: {', '.join(sorted(VALID_INVENTORY_STATUSES))}",
            value
        )
    return normalized
