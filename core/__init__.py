"""
Core shared library for the Sales Insights dashboard.

This package contains the logic behind the web API:
- exceptions: Custom exception hierarchy
- validators: Input validation functions
- filters: Period and day-window date ranges
- pagination: Paging and whitelisted sorting
- config: Centralized configuration
"""

# Import in dependency order
from core.exceptions import (
    DashboardError,
    NotFoundError,
    ValidationError,
    QueryTimeoutError,
)

from core.validators import (
    validate_date_string,
    validate_date_range,
    validate_limit,
    validate_page,
    validate_page_size,
    validate_period,
    validate_day_range,
    validate_amount_range,
)

from core.filters import get_date_range, get_day_window

from core.pagination import PageRequest, PageResult

from core.config import config

__all__ = [
    # Exceptions
    "DashboardError",
    "NotFoundError",
    "ValidationError",
    "QueryTimeoutError",
    # Validators
    "validate_date_string",
    "validate_date_range",
    "validate_limit",
    "validate_page",
    "validate_page_size",
    "validate_period",
    "validate_day_range",
    "validate_amount_range",
    # Filters
    "get_date_range",
    "get_day_window",
    # Pagination
    "PageRequest",
    "PageResult",
    # Config
    "config",
]
