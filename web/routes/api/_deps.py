"""Shared dependencies for API route modules."""
import time
from datetime import date
from typing import Optional, Tuple

from fastapi import HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.cache import cache
from core.duckdb_store import get_store
from core.observability import get_logger
from core.validators import (
    validate_amount_range,
    validate_day_range,
    validate_limit,
    validate_page,
    validate_page_size,
    validate_period,
    validate_search,
    validate_sort_order,
)
from core.exceptions import ValidationError
from web.config import QUERY_RATE_LIMIT, EXPORT_RATE_LIMIT

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address)

# Track startup time for uptime calculation
START_TIME = time.time()


def get_today() -> date:
    """Reference date for date-relative queries; tests override this dependency."""
    return date.today()


def bad_request(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(e))


def report_filters(
    date_range: Optional[str],
    min_amount: Optional[float],
    max_amount: Optional[float],
) -> Tuple[str, Optional[float], Optional[float]]:
    """Validate the ``range``/``minAmount``/``maxAmount`` filters shared by the report pages."""
    try:
        date_range = validate_day_range(date_range)
        min_amount, max_amount = validate_amount_range(min_amount, max_amount)
    except ValidationError as e:
        raise bad_request(e)
    return date_range, min_amount, max_amount


def page_params(page: int, page_size: int, search: Optional[str], sort_order: Optional[str]):
    """Validate paging, search and sort direction; returns them normalized."""
    try:
        page = validate_page(page)
        page_size = validate_page_size(page_size)
        search = validate_search(search)
        sort_order = validate_sort_order(sort_order)
    except ValidationError as e:
        raise bad_request(e)
    return page, page_size, search, sort_order


__all__ = [
    "limiter", "START_TIME", "QUERY_RATE_LIMIT", "EXPORT_RATE_LIMIT",
    "cache", "get_store", "get_today", "get_logger", "bad_request",
    "report_filters", "page_params",
    "validate_limit", "validate_period", "ValidationError",
]
