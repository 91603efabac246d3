"""Rate limit enforcement for routes.

The admin pipeline calls RateLimitGate.check directly so the check is
guaranteed to run before authorization. Other routes use the rate_limit
dependency factory.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated

import structlog
from fastapi import Depends, Request, Response
from redis.exceptions import RedisError

from marketadmin.config import settings
from marketadmin.core.errors import RateLimitError, ServiceUnavailableError
from marketadmin.core.rate_limit.backend import (
    FixedWindowRateLimiter,
    RateLimiter,
    RateLimitResult,
    SlidingWindowRateLimiter,
)
from marketadmin.core.rate_limit.presets import RateLimitPreset


logger = structlog.get_logger()


class RateLimiterHolder:
    """Holder for the process-wide rate limiter backend."""

    limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Dependency returning the configured rate limiter backend."""
    if RateLimiterHolder.limiter is None:
        if settings.rate_limit_backend == "memory":
            RateLimiterHolder.limiter = FixedWindowRateLimiter()
        else:
            RateLimiterHolder.limiter = SlidingWindowRateLimiter()
    return RateLimiterHolder.limiter


def get_client_identifier(request: Request) -> str:
    """Extract the client identifier used for rate limiting.

    The check runs before authentication, so the caller is identified by
    address: the first X-Forwarded-For hop, then X-Real-IP, then the peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return f"ip:{real_ip.strip()}"

    if request.client:
        return f"ip:{request.client.host}"

    return "ip:unknown"


class RateLimitGate:
    """Applies a preset to a request with a bounded wait.

    A backend timeout or error is fail-closed: the request is rejected with
    ServiceUnavailableError instead of being let through.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        timeout: float | None = None,
    ) -> None:
        self.limiter = limiter
        self.timeout = timeout if timeout is not None else settings.rate_limit_timeout_seconds

    async def check(self, request: Request, preset: RateLimitPreset) -> RateLimitResult:
        """Count the request and raise if it is over the preset.

        Raises:
            RateLimitError: Limit exceeded (429, with rate limit headers)
            ServiceUnavailableError: Backend timed out or failed
        """
        identifier = f"{preset.name}:{get_client_identifier(request)}"
        try:
            async with asyncio.timeout(self.timeout):
                result = await self.limiter.is_allowed(identifier, preset)
        except (TimeoutError, RedisError, OSError) as exc:
            logger.error(
                "rate_limit_backend_unavailable",
                preset=preset.name,
                error_type=type(exc).__name__,
            )
            raise ServiceUnavailableError(
                "Rate limiter unavailable. Please try again later.",
                error_code="rate_limiter_unavailable",
            ) from exc

        if not result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                preset=preset.name,
                identifier=identifier,
                retry_after=result.retry_after,
            )
            raise RateLimitError(
                details={"retry_after": result.retry_after},
                headers=result.headers(),
            )

        return result


def get_rate_limit_gate(
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> RateLimitGate:
    """Dependency providing a RateLimitGate over the configured backend."""
    return RateLimitGate(limiter)


RateLimitGateDep = Annotated[RateLimitGate, Depends(get_rate_limit_gate)]


def rate_limit(
    preset: RateLimitPreset,
) -> Callable[[Request, Response, RateLimitGate], Awaitable[RateLimitResult]]:
    """Dependency factory applying a preset to a route.

    Example:
        @router.get("/notifications", dependencies=[Depends(rate_limit(presets.api))])
        async def list_notifications(): ...
    """

    async def dependency(
        request: Request,
        response: Response,
        gate: RateLimitGateDep,
    ) -> RateLimitResult:
        result = await gate.check(request, preset)
        for name, value in result.headers().items():
            response.headers[name] = value
        return result

    return dependency
