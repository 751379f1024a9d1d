"""Capability port every platform integration provides."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from creatorsync.domain.model import (
        NormalizedMetrics,
        PlatformConnection,
        PlatformProfile,
        PlatformSnapshot,
    )


@runtime_checkable
class PlatformAdapter(Protocol):
    """Fetch and normalize one platform's view of a creator.

    Implementations must normalize idempotently (same raw payload, same
    output) and answer in bounded time or raise ``AdapterTimeoutError``.
    Failures are reported by raising ``AdapterFailure`` subclasses.
    """

    async def fetch_profile_data(self, connection: PlatformConnection) -> PlatformSnapshot: ...

    def transform_data(self, raw: Mapping[str, object]) -> NormalizedMetrics: ...

    def detect_changes(
        self, previous: PlatformProfile | None, current: PlatformProfile
    ) -> frozenset[str]: ...


type PlatformAdapters = Mapping[str, PlatformAdapter]


__all__ = ["PlatformAdapter", "PlatformAdapters"]
