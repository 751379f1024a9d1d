"""Public interface for the HTTP platform adapters."""

from __future__ import annotations

from .client import HttpPlatformAdapter, build_platform_adapters, close_platform_adapters
from .schema import (
    InstagramProfile,
    LinkedInProfile,
    MetricsPayload,
    TikTokProfile,
    YouTubeProfile,
)
from .translator import PROFILE_TRANSLATORS, changed_fields, to_profile, transform_metrics

__all__ = [
    "PROFILE_TRANSLATORS",
    "HttpPlatformAdapter",
    "InstagramProfile",
    "LinkedInProfile",
    "MetricsPayload",
    "TikTokProfile",
    "YouTubeProfile",
    "build_platform_adapters",
    "close_platform_adapters",
    "changed_fields",
    "to_profile",
    "transform_metrics",
]
