"""Contact directory endpoint."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from core.pagination import PageResult
from web.config import QUERY_RATE_LIMIT
from ._deps import limiter, get_store, page_params

router = APIRouter(prefix="/contacts")


def get_contact_filters(
    contact_role: Optional[str] = Query(None, alias="contactRole"),
    business_size: Optional[str] = Query(None, alias="businessSize"),
    revenue_category: Optional[str] = Query(None, alias="revenueCategory"),
    contact_tier: Optional[str] = Query(None, alias="contactTier"),
    email_marketable: Optional[bool] = Query(None, alias="emailMarketable"),
    key_account_contact: Optional[bool] = Query(None, alias="keyAccountContact"),
) -> Dict[str, Any]:
    """Contact filters shared by the list and its CSV export."""
    return {
        "contactRole": contact_role,
        "businessSize": business_size,
        "revenueCategory": revenue_category,
        "contactTier": contact_tier,
        "emailMarketable": email_marketable,
        "keyAccountContact": key_account_contact,
    }


@router.get("")
@limiter.limit(QUERY_RATE_LIMIT)
async def list_contacts(
    request: Request,
    page: int = Query(1),
    page_size: int = Query(50, alias="pageSize"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query("companyTotalRevenue", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    filters: Dict[str, Any] = Depends(get_contact_filters),
    store=Depends(get_store),
):
    """Paged contacts; search matches name, email or company."""
    page, page_size, search, sort_order = page_params(page, page_size, search, sort_order)
    result = await store.get_contacts(page, page_size, search, sort_by, sort_order, filters=filters)
    return PageResult(
        result["contacts"], result["totalCount"], page, page_size,
    ).to_dict("contacts")
