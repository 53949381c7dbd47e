"""
FastAPI middleware for observability.

Provides:
- Request correlation ID injection
- Request/response logging with timing
- Request timeout protection (longer for CSV exports)
"""
import asyncio
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse

from core.observability import (
    get_logger,
    correlation_context,
    get_correlation_id,
    metrics,
)
from web.config import REQUEST_TIMEOUT, EXPORT_REQUEST_TIMEOUT

logger = get_logger(__name__)

# Paths that skip request logging and the timeout
HEALTH_PATHS = ("/api/health", "/health")
EXPORT_PREFIX = "/api/export/"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Assigns correlation ID to each request
    2. Logs request start/end with timing
    3. Records metrics
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID")

        with correlation_context(correlation_id) as correlation_id:
            start_time = time.perf_counter()

            method = request.method
            path = request.url.path
            client_ip = request.client.host if request.client else "unknown"
            is_health_check = path in HEALTH_PATHS

            if not is_health_check:
                logger.info(
                    f"Request started: {method} {path}",
                    extra={"method": method, "path": path, "client_ip": client_ip},
                )

            try:
                response = await call_next(request)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"Request failed: {method} {path}",
                    extra={
                        "method": method,
                        "path": path,
                        "duration_ms": round(duration_ms, 2),
                        "error": str(e),
                    },
                    exc_info=True,
                )
                metrics.record_error(type(e).__name__)
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000

            response.headers["X-Request-ID"] = correlation_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

            if not is_health_check:
                level_name = "info" if response.status_code < 400 else "warning"
                getattr(logger, level_name)(
                    f"Request completed: {method} {path}",
                    extra={
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    },
                )

            endpoint = f"{method} {path}"
            metrics.record_request(endpoint)
            metrics.record_timing(endpoint, duration_ms)

            if response.status_code >= 400:
                metrics.record_error(f"HTTP_{response.status_code}")

            return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """
    Middleware that enforces request timeout.

    Returns 504 Gateway Timeout if request exceeds timeout.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path

        if path in HEALTH_PATHS:
            return await call_next(request)

        timeout = EXPORT_REQUEST_TIMEOUT if path.startswith(EXPORT_PREFIX) else REQUEST_TIMEOUT

        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Request timeout: {request.method} {path}",
                extra={"method": request.method, "path": path, "timeout": timeout},
            )
            metrics.record_error("REQUEST_TIMEOUT")
            return JSONResponse(
                status_code=504,
                content={
                    "error": "Request Timeout",
                    "detail": f"Request exceeded {timeout}s timeout",
                    "path": path,
                    "correlation_id": get_correlation_id(),
                },
            )
