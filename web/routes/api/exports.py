"""CSV exports mirroring the list endpoints."""
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from core.config import config
from core.csv_export import (
    COMPANY_COLUMNS,
    CONTACT_COLUMNS,
    ORDER_COLUMNS,
    REORDER_COLUMNS,
    REPORT_ORDER_COLUMNS,
    TRADE_SHOW_LEAD_COLUMNS,
    csv_filename,
    flatten_report_order,
    people_to_csv,
    rows_to_csv,
)
from core.validators import validate_search, validate_sort_order
from web.config import EXPORT_RATE_LIMIT
from ._deps import (
    limiter, get_store, get_today, get_logger, bad_request, validate_period, ValidationError,
)
from .companies import get_company_health_filters
from .contacts import get_contact_filters
from .reorder_planning import ReorderItemFilters, get_reorder_item_filters
from .reports import ReportFilters, get_report_filters

router = APIRouter(prefix="/export", tags=["export"])
logger = get_logger(__name__)


def _csv_response(text: str, prefix: str, today: date) -> StreamingResponse:
    return StreamingResponse(
        iter([text]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={csv_filename(prefix, today)}"},
    )


def _search_and_order(search: Optional[str], sort_order: Optional[str]):
    try:
        return validate_search(search), validate_sort_order(sort_order)
    except ValidationError as e:
        raise bad_request(e)


def _max_rows() -> int:
    return config.pagination.max_export_rows


@router.get("/orders.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_orders(
    request: Request,
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query("orderDate", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    search, sort_order = _search_and_order(search, sort_order)
    result = await store.get_all_orders(1, _max_rows(), search, sort_by, sort_order)
    logger.info(f"Exporting {len(result['orders'])} orders")
    return _csv_response(rows_to_csv(ORDER_COLUMNS, result["orders"]), "orders", today)


@router.get("/companies.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_companies(
    request: Request,
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query("totalRevenue", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    health: bool = Query(False),
    filters: Dict[str, Any] = Depends(get_company_health_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Companies; health columns are filled only with ``health=true``."""
    search, sort_order = _search_and_order(search, sort_order)
    if health:
        result = await store.get_companies_with_health(
            1, _max_rows(), search, sort_by, sort_order, filters=filters,
        )
    else:
        result = await store.get_all_companies(1, _max_rows(), search, sort_by, sort_order)
    return _csv_response(rows_to_csv(COMPANY_COLUMNS, result["companies"]), "companies", today)


@router.get("/contacts.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_contacts(
    request: Request,
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query("companyTotalRevenue", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    filters: Dict[str, Any] = Depends(get_contact_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    search, sort_order = _search_and_order(search, sort_order)
    result = await store.get_contacts(
        1, _max_rows(), search, sort_by, sort_order, filters=filters,
    )
    return _csv_response(rows_to_csv(CONTACT_COLUMNS, result["contacts"]), "contacts", today)


@router.get("/reorder-planning.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_reorder_planning(
    request: Request,
    filters: ReorderItemFilters = Depends(get_reorder_item_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    items = await store.get_reorder_planning_data(*filters.args())
    return _csv_response(rows_to_csv(REORDER_COLUMNS, items), "reorder-planning", today)


@router.get("/trade-show-leads.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_trade_show_leads(
    request: Request,
    period: Optional[str] = Query(None),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    leads = await store.get_trade_show_leads(
        validate_period(period, default="1y"), _max_rows(), today,
    )
    return _csv_response(rows_to_csv(TRADE_SHOW_LEAD_COLUMNS, leads), "trade-show-leads", today)


@router.get("/people/{kind}/{value}.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_people(
    request: Request,
    kind: str,
    value: str,
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """``email,name,attributes`` rows for a channel, customer type or company class."""
    try:
        result = await store.get_people(kind, value)
    except ValidationError as e:
        raise bad_request(e)
    return _csv_response(people_to_csv(result["people"]), f"people-{kind}-{value}", today)


async def _export_report_orders(method, filters: ReportFilters, search, prefix: str, today: date):
    search, _ = _search_and_order(search, "desc")
    result = await method(
        1, _max_rows(), search, "orderDate", "desc", *filters.args(), today=today,
    )
    rows = [flatten_report_order(order) for order in result["orders"]]
    return _csv_response(rows_to_csv(REPORT_ORDER_COLUMNS, rows), prefix, today)


@router.get("/reports/canadian-orders.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_canadian_orders(
    request: Request,
    search: Optional[str] = Query(None),
    filters: ReportFilters = Depends(get_report_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await _export_report_orders(
        store.get_canadian_orders, filters, search, "canadian-orders", today,
    )


@router.get("/reports/adhesive-orders.csv")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_adhesive_orders(
    request: Request,
    search: Optional[str] = Query(None),
    filters: ReportFilters = Depends(get_report_filters),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    return await _export_report_orders(
        store.get_adhesive_only_orders, filters, search, "adhesive-orders", today,
    )
