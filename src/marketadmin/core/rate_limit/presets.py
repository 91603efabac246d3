"""Immutable rate limit presets.

Presets are built once from settings at process start. The admin preset
guards privileged mutations and is stricter than the general API preset.
"""

from dataclasses import dataclass

from marketadmin.config import Settings, settings


@dataclass(frozen=True, slots=True)
class RateLimitPreset:
    """Maximum requests allowed per window for one route class."""

    name: str
    max_requests: int
    window_seconds: int


@dataclass(frozen=True, slots=True)
class RateLimitPresets:
    """The fixed set of presets used by the application."""

    auth: RateLimitPreset
    admin: RateLimitPreset
    api: RateLimitPreset
    email: RateLimitPreset

    @classmethod
    def from_settings(cls, config: Settings) -> "RateLimitPresets":
        """Build presets from application settings."""
        return cls(
            auth=RateLimitPreset(
                "auth", config.rate_limit_auth_requests, config.rate_limit_auth_window
            ),
            admin=RateLimitPreset(
                "admin", config.rate_limit_admin_requests, config.rate_limit_admin_window
            ),
            api=RateLimitPreset(
                "api", config.rate_limit_api_requests, config.rate_limit_api_window
            ),
            email=RateLimitPreset(
                "email", config.rate_limit_email_requests, config.rate_limit_email_window
            ),
        )


presets = RateLimitPresets.from_settings(settings)
