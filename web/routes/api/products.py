"""Product catalog, product detail, and product family endpoints."""
import asyncio
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.exceptions import NotFoundError
from web.config import QUERY_RATE_LIMIT
from ._deps import (
    limiter, get_store, get_today, bad_request,
    validate_limit, validate_period, ValidationError,
)

router = APIRouter()


@router.get("/products")
@limiter.limit(QUERY_RATE_LIMIT)
async def list_products(
    request: Request,
    period: Optional[str] = Query(None),
    limit: int = Query(50),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Sellable products ranked by sales since the start of the period."""
    try:
        limit = validate_limit(limit)
    except ValidationError as e:
        raise bad_request(e)
    return await store.get_products(limit, validate_period(period, default="1y"), today)


@router.get("/products/metrics")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_product_metrics(request: Request, store=Depends(get_store)):
    return await store.get_product_metrics()


@router.get("/products/{item_name}")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_product(
    request: Request,
    item_name: str,
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Product detail with monthly revenue, latest stock snapshot and stock history."""
    product = await store.get_product_by_name(item_name, today)
    if product is None:
        raise NotFoundError("Product", item_name)

    monthly, inventory, trend = await asyncio.gather(
        store.get_product_monthly_revenue(item_name),
        store.get_product_inventory_status(item_name),
        store.get_product_inventory_trend(item_name),
    )
    return {
        "product": product,
        "monthlyRevenue": monthly,
        "inventoryStatus": inventory,
        "inventoryTrend": trend,
    }


@router.get("/families")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_family_sales(
    request: Request,
    period: Optional[str] = Query(None),
    family: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Sales, orders and units per product family against the comparison window."""
    return await store.get_family_sales(validate_period(period, default="1y"), family or None, today)
