"""Per-platform HTTP endpoint configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

PLATFORM_TIMEOUT_SECONDS = 10.0
PLATFORM_RATE_LIMITS: dict[str, RateLimit] = {
    "tiktok": RateLimit(max_calls=5, per_seconds=1.0),
    "instagram": RateLimit(max_calls=3, per_seconds=1.0),
    "youtube": RateLimit(max_calls=10, per_seconds=1.0),
    "linkedin": RateLimit(max_calls=2, per_seconds=1.0),
}


@dataclass(frozen=True)
class PlatformEndpointConfig:
    """Where and how to reach one platform's profile endpoint."""

    platform_id: str
    base_url: str
    access_token: str
    resilience: ResilienceConfig


def _cacheable_profile(payload: object) -> bool:
    # error envelopes are sometimes served with HTTP 200
    return isinstance(payload, dict) and "error" not in payload


def _env_prefix(platform_id: str) -> str:
    return f"CREATORSYNC_{platform_id.upper()}"


def get_platform_config(
    platform_id: str,
    *,
    resilience: ResilienceConfig | None = None,
) -> PlatformEndpointConfig:
    prefix = _env_prefix(platform_id)
    values = require_env_vars((f"{prefix}_BASE_URL", f"{prefix}_TOKEN"))
    base_url = values[f"{prefix}_BASE_URL"]
    token = values[f"{prefix}_TOKEN"]
    return PlatformEndpointConfig(
        platform_id=platform_id,
        base_url=base_url,
        access_token=token,
        resilience=resilience
        or ResilienceConfig(
            name=platform_id,
            base_url=base_url,
            timeout_seconds=PLATFORM_TIMEOUT_SECONDS,
            ratelimit=PLATFORM_RATE_LIMITS.get(platform_id),
            cache=CacheConfig(backend="memory", should_cache=_cacheable_profile),
            default_headers={"Authorization": f"Bearer {token}"},
        ),
    )
