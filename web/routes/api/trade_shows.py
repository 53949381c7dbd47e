"""Trade show performance and lead attribution endpoints."""
import asyncio
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from web.config import QUERY_RATE_LIMIT
from web.schemas import TradeShowMetricsResponse
from ._deps import (
    limiter, cache, get_store, get_today, bad_request,
    validate_limit, validate_period, ValidationError,
)

router = APIRouter(prefix="/trade-shows")


async def _cached_metrics(store, period: str, today: date):
    key = cache.make_key("trade_shows", "metrics", period=period, today=today.isoformat())
    return await cache.get_or_set(key, lambda: store.get_trade_show_metrics(period, today))


@router.get("")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_trade_shows(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Totals plus one summary per show held in the period."""
    period = validate_period(period, default="1y")
    metrics, shows = await asyncio.gather(
        _cached_metrics(store, period, today),
        store.get_trade_show_summaries(period, today),
    )
    return {"metrics": metrics, "shows": shows}


@router.get("/metrics", response_model=TradeShowMetricsResponse)
@limiter.limit(QUERY_RATE_LIMIT)
async def get_trade_show_metrics(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await _cached_metrics(store, validate_period(period, default="1y"), today)


@router.get("/leads")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_trade_show_leads(
    request: Request,
    period: Optional[str] = Query(None),
    limit: int = Query(100),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Leads with the revenue their company brought in after the show."""
    try:
        limit = validate_limit(limit)
    except ValidationError as e:
        raise bad_request(e)
    return await store.get_trade_show_leads(validate_period(period, default="1y"), limit, today)
