"""Outcome of one fan-out over platform adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from creatorsync.domain.model import PlatformSnapshot


@dataclass(frozen=True, slots=True)
class FetchFailure:
    platform_id: str
    error_class: str
    message: str
    retryable: bool = True

    @classmethod
    def from_exception(cls, platform_id: str, exc: BaseException) -> FetchFailure:
        return cls(
            platform_id=platform_id,
            error_class=type(exc).__name__,
            message=str(exc),
            retryable=bool(getattr(exc, "retryable", True)),
        )


@dataclass(slots=True, kw_only=True)
class SyncResult:
    snapshots: tuple[PlatformSnapshot, ...] = ()
    failed: dict[str, FetchFailure] = field(default_factory=dict["str", "FetchFailure"])
    # platform id -> reason it was not dispatched
    skipped: dict[str, str] = field(default_factory=dict["str", "str"])
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> tuple[str, ...]:
        return tuple(snapshot.platform_id for snapshot in self.snapshots)

    @property
    def dispatched(self) -> tuple[str, ...]:
        return tuple(sorted({*self.succeeded, *self.failed}))
