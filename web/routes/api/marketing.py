"""Marketing attribution endpoints: channels, campaigns, referrers, landing pages."""
import asyncio
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from web.config import QUERY_RATE_LIMIT
from web.schemas import AttributionMetricsResponse
from ._deps import (
    limiter, cache, get_store, get_today, bad_request,
    validate_limit, validate_period, ValidationError,
)

router = APIRouter(prefix="/marketing")


def _period(period: Optional[str]) -> str:
    return validate_period(period, default="1y")


def _limit(limit: int) -> int:
    try:
        return validate_limit(limit, max_value=100)
    except ValidationError as e:
        raise bad_request(e)


async def _cached_metrics(store, period: str, today: date):
    key = cache.make_key("marketing", "metrics", period=period, today=today.isoformat())
    return await cache.get_or_set(key, lambda: store.get_attribution_metrics(period, today))


@router.get("/attribution")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_attribution(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Every section of the marketing attribution page."""
    period = _period(period)
    metrics, channels, campaigns, monthly, referrers, landing_pages = await asyncio.gather(
        _cached_metrics(store, period, today),
        store.get_channel_revenue(period, today),
        store.get_campaign_performance(period, today),
        store.get_monthly_channel_revenue(period, today),
        store.get_top_referring_sites(period, 10, today),
        store.get_top_landing_pages(period, 10, today),
    )
    return {
        "metrics": metrics,
        "channels": channels,
        "campaigns": campaigns,
        "monthlyChannelRevenue": monthly,
        "referringSites": referrers,
        "landingPages": landing_pages,
    }


@router.get("/metrics", response_model=AttributionMetricsResponse)
@limiter.limit(QUERY_RATE_LIMIT)
async def get_attribution_metrics(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await _cached_metrics(store, _period(period), today)


@router.get("/channels")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_channel_revenue(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await store.get_channel_revenue(_period(period), today)


@router.get("/campaigns")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_campaigns(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await store.get_campaign_performance(_period(period), today)


@router.get("/monthly")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_monthly_channel_revenue(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Monthly revenue of the five biggest channels."""
    return await store.get_monthly_channel_revenue(_period(period), today)


@router.get("/referrers")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_referring_sites(
    request: Request,
    period: Optional[str] = Query(None),
    limit: int = Query(10),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await store.get_top_referring_sites(_period(period), _limit(limit), today)


@router.get("/landing-pages")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_landing_pages(
    request: Request,
    period: Optional[str] = Query(None),
    limit: int = Query(10),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await store.get_top_landing_pages(_period(period), _limit(limit), today)
