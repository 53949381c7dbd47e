"""
FastAPI web application for the Sales Insights dashboard.
"""
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse, JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from web.config import VERSION, WEB_HOST, WEB_PORT
from web.routes.api import router as api_router
from web.routes.api._deps import limiter
from web.middleware import RequestLoggingMiddleware, RequestTimeoutMiddleware
from core.duckdb_store import get_store, close_store
from core.config import config, validate_config, ConfigurationError
from core.exceptions import NotFoundError, QueryTimeoutError, ValidationError
from core.observability import setup_logging, get_logger, get_correlation_id, metrics
from core.cache import cache

# Configure structured logging
# Use JSON format in production (LOG_FORMAT=json), human-readable otherwise
setup_logging(level=config.logging.level, json_format=(config.logging.format == "json"))
logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Sales Insights",
    description="Sales, inventory and marketing analytics over the QuickBooks mart",
    version=VERSION,
    default_response_class=ORJSONResponse
)

# Route decorators use the shared limiter; slowapi looks it up on app state
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": "Too many requests. Please try again later.",
            "retry_after": exc.detail
        }
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=404,
        content={"detail": f"{exc.message}: {exc.key}"},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(QueryTimeoutError)
async def query_timeout_handler(request: Request, exc: QueryTimeoutError):
    metrics.record_error("QueryTimeoutError")
    logger.error(f"Query timeout on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=504,
        content={
            "error": "Query timeout",
            "detail": f"The query took longer than {exc.timeout}s",
            "correlation_id": get_correlation_id(),
        },
    )


# Timeout is added first so the logging middleware wraps it and the
# correlation id is set when a timeout fires
app.add_middleware(RequestTimeoutMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Add Gzip compression (min 500 bytes to compress)
app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Sales Insights starting...")

    # Validate configuration early - fail fast with clear errors
    try:
        validate_config()
        logger.info("Configuration validated")
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        raise SystemExit(1)

    try:
        store = await get_store()
        stats = await store.get_stats()
        tables = stats["tables"]
        logger.info(
            f"DuckDB ready: {sum(tables.values())} rows across {len(tables)} tables, "
            f"orders {stats['date_range']['min']} to {stats['date_range']['max']}, "
            f"{stats['db_size_mb']} MB"
        )
    except Exception as e:
        logger.error(f"DuckDB initialization failed: {e}", exc_info=True)
        raise  # Fail fast - DuckDB is required

    # Initialize Redis cache (non-fatal if unavailable)
    try:
        if await cache.connect():
            logger.info("Redis cache connected")
        else:
            logger.info("Redis cache not available, running without cache")
    except Exception as e:
        logger.warning(f"Redis cache initialization failed: {e}")

    logger.info("Dashboard ready")


@app.on_event("shutdown")
async def shutdown_event():
    try:
        await cache.disconnect()
    except Exception as e:
        logger.warning(f"Error disconnecting Redis: {e}")

    try:
        await close_store()
        logger.info("DuckDB closed")
    except Exception as e:
        logger.warning(f"Error closing DuckDB: {e}")
    logger.info("Sales Insights stopped")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("web.main:app", host=WEB_HOST, port=WEB_PORT)
