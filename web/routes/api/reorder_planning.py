"""Reorder planning: metrics, priority breakdown, stockout timeline, and items."""
import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.validators import validate_inventory_status
from web.config import QUERY_RATE_LIMIT
from web.schemas import ReorderMetricsResponse
from ._deps import (
    limiter, cache, get_store, get_today, bad_request, validate_limit, ValidationError,
)

router = APIRouter(prefix="/reorder-planning")


@dataclass
class ReorderItemFilters:
    product_family: Optional[str]
    inventory_status: Optional[str]
    demand_trend: Optional[str]
    only_needs_reorder: bool

    def args(self):
        return self.product_family, self.inventory_status, self.demand_trend, self.only_needs_reorder


def get_reorder_item_filters(
    product_family: Optional[str] = Query(None, alias="productFamily"),
    inventory_status: Optional[str] = Query(None, alias="inventoryStatus"),
    demand_trend: Optional[str] = Query(None, alias="demandTrend"),
    only_needs_reorder: bool = Query(False, alias="onlyNeedsReorder"),
) -> ReorderItemFilters:
    """Item filters shared by the planning page, the item list and the CSV export."""
    try:
        inventory_status = validate_inventory_status(inventory_status)
    except ValidationError as e:
        raise bad_request(e)
    return ReorderItemFilters(
        product_family or None, inventory_status, demand_trend or None, only_needs_reorder,
    )


async def _cached_metrics(store):
    return await cache.get_or_set(
        cache.make_key("reorder", "metrics"), lambda: store.get_reorder_metrics(),
    )


@router.get("")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_reorder_planning(
    request: Request,
    filters: ReorderItemFilters = Depends(get_reorder_item_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """The whole reorder planning page: metrics, breakdown, timeline, items and families."""
    metrics, breakdown, timeline, items, families = await asyncio.gather(
        _cached_metrics(store),
        store.get_priority_breakdown(),
        store.get_stockout_timeline(today),
        store.get_reorder_planning_data(*filters.args()),
        store.get_product_families_for_reorder(),
    )
    return {
        "metrics": metrics,
        "priorityBreakdown": breakdown,
        "stockoutTimeline": timeline,
        "items": items,
        "productFamilies": families,
    }


@router.get("/metrics", response_model=ReorderMetricsResponse)
@limiter.limit(QUERY_RATE_LIMIT)
async def get_reorder_metrics(request: Request, store=Depends(get_store)):
    return await _cached_metrics(store)


@router.get("/items")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_reorder_items(
    request: Request,
    filters: ReorderItemFilters = Depends(get_reorder_item_filters),
    store=Depends(get_store),
):
    """Forecast rows in reorder priority order."""
    return await store.get_reorder_planning_data(*filters.args())


@router.get("/timeline")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_stockout_timeline(
    request: Request,
    horizon_days: int = Query(90, alias="horizonDays"),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    try:
        horizon_days = validate_limit(horizon_days, field="horizonDays", max_value=365)
    except ValidationError as e:
        raise bad_request(e)
    return await store.get_stockout_timeline(today, horizon_days)
