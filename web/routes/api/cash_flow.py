"""Cash flow: days sales outstanding, AR aging and problem accounts."""
import asyncio

from fastapi import APIRouter, Depends, Query, Request

from web.config import QUERY_RATE_LIMIT
from web.schemas import DsoResponse
from ._deps import limiter, get_store, bad_request, validate_limit, ValidationError

router = APIRouter(prefix="/cash-flow")


@router.get("")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_cash_flow(request: Request, store=Depends(get_store)):
    """Everything the cash flow page shows, in one payload."""
    dso, aging, problems = await asyncio.gather(
        store.get_current_dso(),
        store.get_ar_aging_details(),
        store.get_problem_accounts(),
    )
    return {"dso": dso, "arAging": aging, "problemAccounts": problems}


@router.get("/dso", response_model=DsoResponse)
@limiter.limit(QUERY_RATE_LIMIT)
async def get_dso(request: Request, store=Depends(get_store)):
    return await store.get_current_dso()


@router.get("/ar-aging")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_ar_aging(request: Request, store=Depends(get_store)):
    return await store.get_ar_aging_details()


@router.get("/problem-accounts")
@limiter.limit(QUERY_RATE_LIMIT)
async def get_problem_accounts(
    request: Request,
    limit: int = Query(25),
    store=Depends(get_store),
):
    try:
        limit = validate_limit(limit, max_value=200)
    except ValidationError as e:
        raise bad_request(e)
    return await store.get_problem_accounts(limit)
