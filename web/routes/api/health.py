"""Health check, metrics, and DuckDB stats endpoints."""
import asyncio
import time

import psutil
from fastapi import APIRouter, Depends, Request

from core.observability import get_correlation_id, metrics, Timer
from web.config import VERSION
from web.schemas import HealthResponse, MetricsResponse
from ._deps import limiter, cache, get_store, get_logger, START_TIME

router = APIRouter()
logger = get_logger(__name__)

# Health check stats cache (60 second TTL)
_stats_cache: dict = {"data": None, "expires_at": 0}
_stats_cache_lock = asyncio.Lock()
_STATS_CACHE_TTL = 60


async def _duckdb_component(store) -> dict:
    try:
        with Timer("health_duckdb") as timer:
            stats = await store.get_stats()
        return {"status": "connected", "latency_ms": round(timer.elapsed_ms, 2), **stats}
    except Exception as e:
        logger.warning(f"DuckDB health check failed: {e}")
        return {"status": f"error: {e}"}


@router.get("/health", response_model=HealthResponse)
@limiter.limit("60/minute")
async def health_check(request: Request, store=Depends(get_store)):
    """Health check endpoint for Docker/load balancer monitoring."""
    now = time.time()
    async with _stats_cache_lock:
        if _stats_cache["data"] and now < _stats_cache["expires_at"]:
            duckdb = {**_stats_cache["data"], "latency_ms": 0.0}
        else:
            duckdb = await _duckdb_component(store)
            if duckdb["status"] == "connected":
                _stats_cache["data"] = duckdb
                _stats_cache["expires_at"] = now + _STATS_CACHE_TTL

    return {
        "status": "healthy" if duckdb["status"] == "connected" else "degraded",
        "version": VERSION,
        "uptime_seconds": int(now - START_TIME),
        "correlation_id": get_correlation_id(),
        "duckdb": duckdb,
    }


@router.get("/health/detailed")
@limiter.limit("30/minute")
async def detailed_health_check(request: Request, store=Depends(get_store)):
    """Detailed health check with component-level status."""
    components = {"duckdb": await _duckdb_component(store)}
    overall_status = "healthy" if components["duckdb"]["status"] == "connected" else "degraded"

    if cache.is_connected:
        components["redis"] = {"status": "connected", **cache.get_stats()}
    else:
        components["redis"] = {"status": "not_connected", "enabled": cache.enabled}

    uptime_seconds = int(time.time() - START_TIME)
    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        sys_metrics = {
            "uptime_seconds": uptime_seconds,
            "memory_mb": round(memory_info.rss / 1024 / 1024, 1),
            "memory_percent": round(process.memory_percent(), 1),
            "cpu_percent": round(process.cpu_percent(interval=0.1), 1),
            "threads": process.num_threads(),
        }
    except psutil.Error as e:
        logger.debug(f"Process metrics unavailable: {e}")
        sys_metrics = {"uptime_seconds": uptime_seconds}

    return {
        "status": overall_status,
        "version": VERSION,
        "correlation_id": get_correlation_id(),
        "components": components,
        "metrics": sys_metrics,
    }


@router.get("/metrics", response_model=MetricsResponse)
@limiter.limit("60/minute")
async def get_metrics_endpoint(request: Request):
    """Get application metrics."""
    return {
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        **metrics.get_stats(),
    }
