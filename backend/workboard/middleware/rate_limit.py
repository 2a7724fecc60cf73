"""Rate limiting middleware using in-memory token buckets.

No external dependencies (no Redis). Limits come from Settings:

- Global: ``rate_limit_rpm`` requests/minute per client IP
- Bulk reorder (POST /api/v1/tasks/bulk-update): ``rate_limit_bulk_rpm``

Buckets that have refilled completely carry no state worth keeping and are
swept periodically, so memory tracks recently active clients only.
"""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from workboard.errors import error_response

logger = logging.getLogger(__name__)

_BULK_ENDPOINTS = frozenset({"/api/v1/tasks/bulk-update"})
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc", "/"})

SWEEP_INTERVAL_SECONDS = 60.0


class TokenBucket:
    """``per_minute`` requests per minute, bursting up to the same amount."""

    def __init__(self, per_minute: int, now: float | None = None) -> None:
        self.capacity = float(per_minute)
        self.refill_per_second = per_minute / 60.0
        self.tokens = self.capacity
        self.updated_at = time.monotonic() if now is None else now

    def _refill(self, now: float) -> None:
        self.tokens = min(self.capacity, self.tokens + (now - self.updated_at) * self.refill_per_second)
        self.updated_at = now

    def consume(self, now: float | None = None) -> bool:
        """Take one token if available."""
        self._refill(time.monotonic() if now is None else now)
        if self.tokens < 1.0:
            return False
        self.tokens -= 1.0
        return True

    def is_idle(self, now: float) -> bool:
        """True once the bucket would be back at full capacity."""
        missing = self.capacity - self.tokens
        return now - self.updated_at >= missing / self.refill_per_second


class BucketTable:
    """Token buckets keyed by client, created on first use."""

    def __init__(self, per_minute: int) -> None:
        self.per_minute = per_minute
        self._buckets: dict[str, TokenBucket] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def consume(self, key: str, now: float) -> bool:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = TokenBucket(self.per_minute, now=now)
        return bucket.consume(now)

    def sweep(self, now: float) -> int:
        """Drop idle buckets; returns how many were removed."""
        idle = [key for key, bucket in self._buckets.items() if bucket.is_idle(now)]
        for key in idle:
            del self._buckets[key]
        return len(idle)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory rate limiter per client IP.

    Args:
        global_rpm: Requests per minute per client across all endpoints.
        bulk_rpm: Requests per minute per client for bulk reorder.
    """

    def __init__(self, app, global_rpm: int = 120, bulk_rpm: int = 30) -> None:
        super().__init__(app)
        self.global_buckets = BucketTable(global_rpm)
        self.bulk_buckets = BucketTable(bulk_rpm)
        self._last_sweep = time.monotonic()

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        removed = self.global_buckets.sweep(now) + self.bulk_buckets.sweep(now)
        if removed:
            logger.debug("Evicted %d idle rate-limit buckets", removed)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in _EXEMPT_PATHS:
            return await call_next(request)

        now = time.monotonic()
        self._maybe_sweep(now)
        client_ip = request.client.host if request.client else "unknown"

        if not self.global_buckets.consume(client_ip, now):
            logger.warning("Rate limit exceeded for %s on %s", client_ip, path)
            return error_response(
                "RateLimited", "Rate limit exceeded. Please retry later.", 429,
                headers={"Retry-After": "60"},
            )

        if request.method == "POST" and path in _BULK_ENDPOINTS and not self.bulk_buckets.consume(client_ip, now):
            logger.warning("Bulk update rate limit exceeded for %s", client_ip)
            return error_response(
                "RateLimited", "Rate limit exceeded for this endpoint. Please retry later.", 429,
                headers={"Retry-After": "60"},
            )

        return await call_next(request)
