"""Global request rate limiting.

A single token bucket shared by every request handled by the process.
The bucket is created at startup and handed to the middleware; nothing
here is a module-level singleton.
"""

import logging
import threading
import time
from typing import Callable

from fastapi import status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from api import response

logger = logging.getLogger(__name__)


class RateLimiter:
    """Thread-safe token bucket.

    Args:
        rate: tokens added per second
        burst: bucket capacity
        clock: monotonic time source, seconds
    """

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic):
        if rate <= 0 or burst < 1:
            raise ValueError("rate must be positive and burst at least 1")
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = threading.Lock()

    def allow(self) -> bool:
        """Take one token if available."""
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._updated)
            self._tokens = min(self.burst, self._tokens + elapsed * self.rate)
            self._updated = now
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests with 429 once the shared bucket is empty."""

    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        if not self.limiter.allow():
            logger.warning("Rate limit exceeded", extra={"path": request.url.path})
            return response.error(
                status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests", "Rate limit exceeded"
            )
        return await call_next(request)
