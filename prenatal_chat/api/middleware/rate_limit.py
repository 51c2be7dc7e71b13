"""Per-client-IP request rate limiting for /api/* routes.

Sliding window kept in process memory: at most ``max_requests`` per
``window_seconds`` per client IP. Not shared across worker processes.
"""

from __future__ import annotations

import logging
import threading
import time

from fastapi import Request
from fastapi.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def get_client_ip(request: Request, trust_proxy: bool = False) -> str:
    """Extract client IP from request.

    X-Forwarded-For is honored only when ``trust_proxy`` is set.
    """
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimiter:
    """Thread-safe sliding-window counter keyed by client IP.

    Args:
        max_requests: Requests allowed per window.
        window_seconds: Window length.
        trust_proxy: Key clients by X-Forwarded-For instead of the peer address.
    """

    def __init__(
        self, max_requests: int, window_seconds: float, trust_proxy: bool = False
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.trust_proxy = trust_proxy
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = time.monotonic()

    def hit(self, key: str) -> bool:
        """Record a request for ``key``.

        Returns:
            True if the request is allowed, False if the limit is exceeded.
        """
        with self._lock:
            now = time.monotonic()
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            timestamps = [
                t for t in self._hits.get(key, []) if now - t < self.window_seconds
            ]
            if len(timestamps) >= self.max_requests:
                self._hits[key] = timestamps
                return False
            timestamps.append(now)
            self._hits[key] = timestamps
            return True

    def _sweep(self, now: float) -> None:
        """Drop keys with no request inside the window. Caller holds the lock."""
        expired = [
            key
            for key, timestamps in self._hits.items()
            if not timestamps or now - timestamps[-1] >= self.window_seconds
        ]
        for key in expired:
            del self._hits[key]
        self._last_sweep = now

    def reset(self) -> None:
        """Forget all recorded requests."""
        with self._lock:
            self._hits.clear()
            self._last_sweep = time.monotonic()


async def enforce_rate_limit(request: Request, call_next) -> Response:
    """FastAPI middleware entrypoint.

    Uses the RateLimiter on ``app.state.rate_limiter``; a missing limiter
    (rate limiting disabled) lets everything through.
    """
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if (
        limiter is None
        or request.method.upper() == "OPTIONS"
        or not request.url.path.startswith("/api/")
    ):
        return await call_next(request)

    client_ip = get_client_ip(request, trust_proxy=limiter.trust_proxy)
    if not limiter.hit(client_ip):
        logger.warning("Rate limit exceeded for IP %s", client_ip)
        return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})
    return await call_next(request)
