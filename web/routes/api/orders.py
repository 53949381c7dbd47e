"""Order list and order detail endpoints."""
import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.exceptions import NotFoundError
from core.pagination import PageResult
from web.config import QUERY_RATE_LIMIT
from ._deps import limiter, get_store, page_params

router = APIRouter(prefix="/orders")


@router.get("")
@limiter.limit(QUERY_RATE_LIMIT)
async def list_orders(
    request: Request,
    page: int = Query(1),
    page_size: int = Query(25, alias="pageSize"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query("orderDate", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    store=Depends(get_store),
):
    """Paged orders; search matches order number or customer."""
    page, page_size, search, sort_order = page_params(page, page_size, search, sort_order)
    result = await store.get_all_orders(page, page_size, search, sort_by, sort_order)
    return PageResult(result["orders"], result["totalCount"], page, page_size).to_dict("orders")


@router.get("/{order_number}")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_order(request: Request, order_number: str, store=Depends(get_store)):
    """Order header with its line items."""
    order, line_items = await asyncio.gather(
        store.get_order_by_number(order_number),
        store.get_order_line_items(order_number),
    )
    if order is None:
        raise NotFoundError("Order", order_number)
    return {**order, "lineItems": line_items}
