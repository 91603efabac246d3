"""Rate limiting with Redis sliding windows or in-memory fixed windows.

Provides per-client, per-route-class limits with immutable presets.
"""

from marketadmin.core.rate_limit.backend import (
    FixedWindowRateLimiter,
    RateLimiter,
    RateLimitResult,
    SlidingWindowRateLimiter,
)
from marketadmin.core.rate_limit.dependencies import (
    RateLimitGate,
    RateLimitGateDep,
    get_client_identifier,
    get_rate_limiter,
    rate_limit,
)
from marketadmin.core.rate_limit.presets import RateLimitPreset, RateLimitPresets, presets


__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitGate",
    "RateLimitGateDep",
    "RateLimitPreset",
    "RateLimitPresets",
    "RateLimitResult",
    "RateLimiter",
    "SlidingWindowRateLimiter",
    "get_client_identifier",
    "get_rate_limiter",
    "presets",
    "rate_limit",
]
