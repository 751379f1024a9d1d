"""Synchronization defaults for platform fan-out and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING

from .env import optional_float, optional_list
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_CV_THRESHOLD = 0.15
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_PLATFORM_PRIORITY: tuple[str, ...] = ("youtube", "instagram", "tiktok", "linkedin")
DEFAULT_SYNC_INTERVALS: Mapping[str, timedelta] = MappingProxyType(
    {
        "hourly": timedelta(hours=1),
        "daily": timedelta(days=1),
    }
)


@dataclass(frozen=True, slots=True)
class SyncConfig:
    cv_threshold: float = DEFAULT_CV_THRESHOLD
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    platform_priority: tuple[str, ...] = DEFAULT_PLATFORM_PRIORITY
    sync_intervals: Mapping[str, timedelta] = field(default_factory=lambda: DEFAULT_SYNC_INTERVALS)

    def __post_init__(self) -> None:
        if self.cv_threshold < 0:
            raise ConfigurationError("cv_threshold must be non-negative")
        if self.fetch_timeout_seconds <= 0:
            raise ConfigurationError("fetch_timeout_seconds must be positive")

    def priority_rank(self, platform_id: str) -> int:
        """Lower rank wins; platforms missing from the list rank after all listed ones."""

        try:
            return self.platform_priority.index(platform_id)
        except ValueError:
            return len(self.platform_priority)


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        cv_threshold=optional_float("CREATORSYNC_CV_THRESHOLD", DEFAULT_CV_THRESHOLD),
        fetch_timeout_seconds=optional_float(
            "CREATORSYNC_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT_SECONDS
        ),
        platform_priority=optional_list(
            "CREATORSYNC_PLATFORM_PRIORITY", DEFAULT_PLATFORM_PRIORITY
        ),
    )
