"""Dashboard KPIs, recent orders, channel history, revenue trend, and period options."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.filters import get_period_options, get_timeframe_range
from core.validators import validate_timeframe
from web.config import QUERY_RATE_LIMIT
from web.schemas import DashboardMetricsResponse
from ._deps import (
    limiter, cache, get_store, get_today, bad_request,
    validate_limit, validate_period, ValidationError,
)

router = APIRouter()


@router.get("/dashboard/metrics", response_model=DashboardMetricsResponse)
@limiter.limit(QUERY_RATE_LIMIT)
async def get_dashboard_metrics(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Revenue, orders and trailing-year paid sales with growth."""
    period = validate_period(period)
    key = cache.make_key("dashboard", "metrics", period=period, today=today.isoformat())
    return await cache.get_or_set(key, lambda: store.get_dashboard_metrics(period, today))


@router.get("/dashboard/recent-orders")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_recent_orders(
    request: Request,
    limit: int = Query(20),
    store=Depends(get_store),
):
    try:
        limit = validate_limit(limit, max_value=100)
    except ValidationError as e:
        raise bad_request(e)
    return await store.get_recent_orders(limit)


@router.get("/dashboard/channels")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_channel_metrics(
    request: Request,
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Revenue and orders per sales channel for the last four trailing years."""
    return await store.get_channel_metrics(today)


@router.get("/dashboard/revenue-trend")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_revenue_trend(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await store.get_revenue_trend(validate_period(period), today)


@router.get("/dashboard/order-status")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_order_status(
    request: Request,
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Order counts and totals per status over the last 30 days."""
    return await store.get_order_status_breakdown(today)


@router.get("/periods")
@limiter.limit("60/minute")
async def get_periods(
    request: Request,
    timeframe: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    today: date = Depends(get_today),
):
    """Period selector options plus the resolved window of a report timeframe."""
    timeframe = validate_timeframe(timeframe)
    window = get_timeframe_range(timeframe, start, end, today)
    return {
        "periods": get_period_options(),
        "timeframe": {
            "value": timeframe,
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
            "displayText": window.display_text,
        },
    }
