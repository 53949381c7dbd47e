"""People lists for email campaigns, by channel, customer type or company class."""
from fastapi import APIRouter, Depends, Request

from web.config import QUERY_RATE_LIMIT
from ._deps import limiter, get_store

router = APIRouter(prefix="/people")


@router.get("")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_people_overview(request: Request, store=Depends(get_store)):
    return await store.get_people_overview()


@router.get("/channel/{channel}")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_people_by_channel(request: Request, channel: str, store=Depends(get_store)):
    return await store.get_people_by_channel(channel)


@router.get("/customer-type/{customer_type}")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_people_by_customer_type(
    request: Request, customer_type: str, store=Depends(get_store),
):
    return await store.get_people_by_customer_type(customer_type)


@router.get("/company-class/{company_class}")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_people_by_company_class(
    request: Request, company_class: str, store=Depends(get_store),
):
    """People whose company belongs to the given class (by company domain)."""
    return await store.get_people_by_company_class(company_class)
