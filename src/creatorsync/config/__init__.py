"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .platforms import PlatformEndpointConfig, get_platform_config
from .scoring import ScoringConfig, get_scoring_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "PlatformEndpointConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "ScoringConfig",
    "SyncConfig",
    "configure_logging",
    "get_platform_config",
    "get_scoring_config",
    "get_sync_config",
    "require_env_var",
    "require_env_vars",
]
