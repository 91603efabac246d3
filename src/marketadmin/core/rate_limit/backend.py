"""Rate limiter backends.

SlidingWindowRateLimiter uses Redis sorted sets (ZSET) for accurate sliding
windows shared by every process. FixedWindowRateLimiter keeps counters in
process memory and is meant for development and tests.
"""

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from marketadmin.core.cache.redis import redis_client
from marketadmin.core.rate_limit.presets import RateLimitPreset


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    retry_after: int | None = None

    def headers(self) -> dict[str, str]:
        """Informational rate limit headers for the response."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_time),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter(Protocol):
    """Interface shared by the rate limiter backends."""

    async def is_allowed(
        self,
        identifier: str,
        preset: RateLimitPreset,
        endpoint: str | None = None,
    ) -> RateLimitResult: ...

    async def reset(self, identifier: str, endpoint: str | None = None) -> bool: ...


def build_key(prefix: str, identifier: str, endpoint: str | None = None) -> str:
    """Build the storage key for an identifier and optional endpoint.

    Args:
        prefix: Key prefix
        identifier: Route class plus client identifier
        endpoint: Optional endpoint path for per-route limits

    Returns:
        Key string
    """
    if endpoint:
        endpoint_key = endpoint.replace("/", "_").strip("_")
        return f"{prefix}:{identifier}:{endpoint_key}"
    return f"{prefix}:{identifier}"


class SlidingWindowRateLimiter:
    """Redis-based sliding window rate limiter.

    Uses sorted sets to track requests within a sliding time window.
    Each request is stored with its timestamp as the score, allowing
    efficient cleanup of old entries and accurate counting.
    """

    def __init__(self, prefix: str = "ratelimit") -> None:
        self.prefix = prefix

    def _build_key(self, identifier: str, endpoint: str | None = None) -> str:
        return build_key(self.prefix, identifier, endpoint)

    async def is_allowed(
        self,
        identifier: str,
        preset: RateLimitPreset,
        endpoint: str | None = None,
    ) -> RateLimitResult:
        """Check if a request is allowed under the rate limit.

        Runs as one MULTI/EXEC transaction, so concurrent requests for the
        same key are counted exactly once each:
        1. Remove entries older than (now - window)
        2. Add current request with a unique member
        3. Count entries in the window
        4. Allow if count <= limit

        Args:
            identifier: Route class plus client identifier
            preset: Limit and window to apply
            endpoint: Optional endpoint for per-route limits

        Returns:
            RateLimitResult with allowed status and metadata
        """
        key = self._build_key(identifier, endpoint)
        limit = preset.max_requests
        window = preset.window_seconds
        now = time.time()
        window_start = now - window

        async with redis_client() as client, client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zadd(key, {f"{now}:{uuid4().hex}": now})
            pipe.zcard(key)
            pipe.expire(key, window)

            results = await pipe.execute()
            count = results[2]

        allowed = count <= limit
        return RateLimitResult(
            allowed=allowed,
            limit=limit,
            remaining=max(0, limit - count),
            reset_time=int(now + window),
            retry_after=window if not allowed else None,
        )

    async def reset(self, identifier: str, endpoint: str | None = None) -> bool:
        """Reset rate limit for an identifier.

        Returns:
            True if key was deleted
        """
        key = self._build_key(identifier, endpoint)
        async with redis_client() as client:
            result = await client.delete(key)
            return result > 0


@dataclass
class _WindowEntry:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """In-process fixed window rate limiter.

    Counters live in a dict guarded by an asyncio.Lock, so concurrent
    requests from the same key cannot lose updates. Expired windows are
    swept whenever a new window is opened.
    """

    def __init__(
        self,
        prefix: str = "ratelimit",
        time_func: Callable[[], float] = time.time,
    ) -> None:
        self.prefix = prefix
        self._time = time_func
        self._entries: dict[str, _WindowEntry] = {}
        self._lock = asyncio.Lock()

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in expired:
            del self._entries[key]

    async def is_allowed(
        self,
        identifier: str,
        preset: RateLimitPreset,
        endpoint: str | None = None,
    ) -> RateLimitResult:
        """Count the request against its window and report the outcome."""
        key = build_key(self.prefix, identifier, endpoint)
        limit = preset.max_requests

        async with self._lock:
            now = self._time()
            entry = self._entries.get(key)
            if entry is None or now > entry.reset_at:
                self._sweep(now)
                entry = _WindowEntry(count=0, reset_at=now + preset.window_seconds)
                self._entries[key] = entry
            entry.count += 1
            count = entry.count
            reset_at = entry.reset_at

        allowed = count <= limit
        return RateLimitResult(
            allowed=allowed,
            limit=limit,
            remaining=max(0, limit - count),
            reset_time=int(reset_at),
            retry_after=None if allowed else max(1, math.ceil(reset_at - now)),
        )

    async def reset(self, identifier: str, endpoint: str | None = None) -> bool:
        """Forget the counter for an identifier."""
        key = build_key(self.prefix, identifier, endpoint)
        async with self._lock:
            return self._entries.pop(key, None) is not None
