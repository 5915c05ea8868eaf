"""Access logging for every HTTP request."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("api.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status, latency and client of each request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        result = await call_next(request)
        latency_ms = round((time.perf_counter() - start) * 1000, 2)

        logger.info("Request", extra={
            "method": request.method,
            "path": request.url.path,
            "status": result.status_code,
            "latencyMs": latency_ms,
            "ip": request.client.host if request.client else None,
            "userAgent": request.headers.get("user-agent"),
        })
        return result
