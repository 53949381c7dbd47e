"""Admin operations: cache statistics and invalidation after a mart refresh."""
import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from web.config import ADMIN_TOKEN
from web.schemas import CacheStatsResponse
from ._deps import limiter, cache, get_logger

router = APIRouter(prefix="/admin")
logger = get_logger(__name__)


def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    """Check ``X-Admin-Token`` when an admin token is configured."""
    if not ADMIN_TOKEN:
        return
    if not x_admin_token or not hmac.compare_digest(x_admin_token, ADMIN_TOKEN):
        logger.warning("Rejected admin request with missing or wrong token")
        raise HTTPException(status_code=403, detail="Admin token required")


@router.get("/cache/stats", response_model=CacheStatsResponse)
@limiter.limit("60/minute")
async def get_cache_stats(request: Request):
    """Get Redis cache statistics."""
    return cache.get_stats()


@router.post("/cache/invalidate", dependencies=[Depends(require_admin)])
@limiter.limit("10/minute")
async def invalidate_cache(
    request: Request,
    pattern: Optional[str] = Query(None, description="Key pattern; defaults to every dashboard key"),
):
    """Invalidate cached KPI payloads, e.g. after the upstream mart refresh."""
    if not cache.is_connected:
        raise HTTPException(status_code=503, detail="Cache not connected")

    pattern = pattern or f"{cache.namespace}:*"
    deleted = await cache.invalidate_pattern(pattern)
    logger.info(f"Cache invalidated: {deleted} keys matching {pattern}")
    return {"status": "success", "pattern": pattern, "keys_deleted": deleted}
