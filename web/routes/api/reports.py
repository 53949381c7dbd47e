"""Report endpoints: sales channels, Canadian sales, adhesive orders, pop and drop."""
import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.validators import validate_months
from web.config import QUERY_RATE_LIMIT
from web.schemas import PopAndDropResponse
from ._deps import (
    limiter, get_store, get_today, bad_request, page_params, report_filters, ValidationError,
)

router = APIRouter(prefix="/reports", tags=["reports"])


@dataclass
class ReportFilters:
    date_range: str
    min_amount: Optional[float]
    max_amount: Optional[float]
    filter_consumer: bool

    def args(self):
        return self.date_range, self.min_amount, self.max_amount, self.filter_consumer


def get_report_filters(
    date_range: Optional[str] = Query(None, alias="range"),
    min_amount: Optional[float] = Query(None, alias="minAmount"),
    max_amount: Optional[float] = Query(None, alias="maxAmount"),
    filter_consumer: bool = Query(False, alias="filterConsumer"),
) -> ReportFilters:
    """Filters shared by every report page."""
    date_range, min_amount, max_amount = report_filters(date_range, min_amount, max_amount)
    return ReportFilters(date_range, min_amount, max_amount, filter_consumer)


@router.get("/channels")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_sales_channels(
    request: Request,
    filters: ReportFilters = Depends(get_report_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Orders, units and revenue per sales channel over consecutive windows, newest first."""
    return await store.get_sales_channel_metrics(*filters.args(), today=today)


@router.get("/canadian-sales")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_canadian_sales(
    request: Request,
    filters: ReportFilters = Depends(get_report_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Canadian metrics with top customers, units by product and the US comparison."""
    args = filters.args()
    metrics, top_customers, units_sold, us_metrics = await asyncio.gather(
        store.get_canadian_sales_metrics(*args, today=today),
        store.get_canadian_top_customers(*args, today=today),
        store.get_canadian_units_sold(*args, today=today),
        store.get_us_sales_metrics(*args, today=today),
    )
    return {
        "metrics": metrics,
        "topCustomers": top_customers,
        "unitsSold": units_sold,
        "usComparison": us_metrics,
    }


async def _report_orders(method, filters, page, page_size, search, sort_column, sort_direction, today):
    page, page_size, search, sort_direction = page_params(page, page_size, search, sort_direction)
    return await method(
        page, page_size, search, sort_column, sort_direction,
        *filters.args(), today=today,
    )


@router.get("/canadian-orders")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_canadian_orders(
    request: Request,
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    search: Optional[str] = Query(None),
    sort_column: Optional[str] = Query("orderDate", alias="sortColumn"),
    sort_direction: Optional[str] = Query("desc", alias="sortDirection"),
    filters: ReportFilters = Depends(get_report_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await _report_orders(
        store.get_canadian_orders, filters, page, page_size, search,
        sort_column, sort_direction, today,
    )


@router.get("/adhesive")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_adhesive_metrics(
    request: Request,
    filters: ReportFilters = Depends(get_report_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await store.get_adhesive_metrics(*filters.args(), today=today)


@router.get("/adhesive-orders")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_adhesive_orders(
    request: Request,
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    search: Optional[str] = Query(None),
    sort_column: Optional[str] = Query("orderDate", alias="sortColumn"),
    sort_direction: Optional[str] = Query("desc", alias="sortDirection"),
    filters: ReportFilters = Depends(get_report_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Orders made up only of adhesive products, from customers outside the SP line."""
    return await _report_orders(
        store.get_adhesive_only_orders, filters, page, page_size, search,
        sort_column, sort_direction, today,
    )


@router.get("/pop-and-drop", response_model=PopAndDropResponse)
@limiter.limit(QUERY_RATE_LIMIT)
async def get_pop_and_drop(
    request: Request,
    months: int = Query(3),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    try:
        months = validate_months(months)
    except ValidationError as e:
        raise bad_request(e)
    return await store.get_company_order_metrics(months, today)
