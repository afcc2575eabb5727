"""
Fixed-window rate limiting per client IP.
"""

import threading
import time
from typing import Dict, Iterable, Optional, Tuple

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from sentinel.core.exceptions import RateLimitExceededError
from sentinel.core.settings import settings
from sentinel.models.base import error_response
from sentinel.utils.security import get_client_ip
import logging

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
EXEMPT_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


class FixedWindowCounter:
    """
    In-memory request counters keyed by client, reset every window.
    """

    def __init__(self, limit: Optional[int] = None, window_seconds: int = WINDOW_SECONDS, clock=time.monotonic):
        self._limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit or settings.RATE_LIMIT_PER_MINUTE

    def hit(self, key: str) -> Tuple[bool, int]:
        """
        Count one request for key.

        Returns:
            (allowed, seconds until the current window resets)
        """
        now = self.clock()
        window = int(now // self.window_seconds)
        retry_after = max(1, int((window + 1) * self.window_seconds - now))

        with self._lock:
            current_window, count = self._windows.get(key, (window, 0))
            if current_window != window:
                count = 0
            count += 1
            self._windows[key] = (window, count)

            # Drop counters from earlier windows
            if len(self._windows) > 10000:
                self._windows = {k: v for k, v in self._windows.items() if v[0] == window}

        return count <= self.limit, retry_after

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


# Shared by every RateLimitMiddleware that is not given its own counter
request_counter = FixedWindowCounter()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed RATE_LIMIT_PER_MINUTE with a 429 envelope."""

    def __init__(
        self,
        app,
        counter: Optional[FixedWindowCounter] = None,
        exempt_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.counter = counter or request_counter
        self.exempt_paths = tuple(exempt_paths) if exempt_paths is not None else EXEMPT_PATHS

    def _is_exempt(self, path: str) -> bool:
        return path == "/" or any(path.startswith(prefix) for prefix in self.exempt_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        if self._is_exempt(request.url.path):
            return await call_next(request)

        client_ip = get_client_ip(request)
        allowed, retry_after = self.counter.hit(client_ip)
        if not allowed:
            logger.warning(f"Rate limit exceeded: ip={client_ip}, path={request.url.path}")
            error = RateLimitExceededError("Too many requests. Please try again later.")
            return JSONResponse(
                status_code=error.status_code,
                content=error_response(error.message),
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
