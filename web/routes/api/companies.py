"""Company list and company profile endpoints."""
import asyncio
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from core.exceptions import NotFoundError
from core.pagination import PageResult
from core.validators import validate_domain_key
from web.config import QUERY_RATE_LIMIT
from ._deps import limiter, get_store, get_today, bad_request, page_params, ValidationError

router = APIRouter(prefix="/companies")


def get_company_health_filters(
    activity_status: Optional[str] = Query(None, alias="activityStatus"),
    business_size: Optional[str] = Query(None, alias="businessSize"),
    revenue_category: Optional[str] = Query(None, alias="revenueCategory"),
    health_category: Optional[str] = Query(None, alias="healthCategory"),
    country: Optional[str] = Query(None),
) -> Dict[str, Any]:
    """Health filters shared by the company list and its CSV export."""
    return {
        "activityStatus": activity_status,
        "businessSize": business_size,
        "revenueCategory": revenue_category,
        "healthCategory": health_category,
        "country": country,
    }


@router.get("")
@limiter.limit(QUERY_RATE_LIMIT)
async def list_companies(
    request: Request,
    page: int = Query(1),
    page_size: int = Query(50, alias="pageSize"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query("totalRevenue", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    health: bool = Query(False),
    filters: Dict[str, Any] = Depends(get_company_health_filters),
    store=Depends(get_store),
):
    """
    Paged corporate companies.

    With ``health=true`` only companies that have a health record are listed,
    with their health fields, and the health filters apply.
    """
    page, page_size, search, sort_order = page_params(page, page_size, search, sort_order)

    if health:
        result = await store.get_companies_with_health(
            page, page_size, search, sort_by, sort_order, filters=filters,
        )
    else:
        result = await store.get_all_companies(page, page_size, search, sort_by, sort_order)

    return PageResult(
        result["companies"], result["totalCount"], page, page_size,
    ).to_dict("companies")


@router.get("/{domain}")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_company(
    request: Request,
    domain: str,
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    """Company profile with its customers, orders, products, contacts and recency stats."""
    try:
        domain = validate_domain_key(domain)
    except ValidationError as e:
        raise bad_request(e)

    company = await store.get_company_by_domain(domain)
    if company is None:
        raise NotFoundError("Company", domain)

    customers, orders, products, contacts, health = await asyncio.gather(
        store.get_company_customers(domain),
        store.get_company_order_timeline(domain),
        store.get_company_product_analysis(domain),
        store.get_company_contacts(domain),
        store.get_company_health_basic(domain, today),
    )
    return {
        "company": company,
        "customers": customers,
        "orders": orders,
        "products": products,
        "contacts": contacts,
        "healthBasic": health,
    }
