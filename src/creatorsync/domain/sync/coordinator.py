"""Concurrent fan-out over platform adapters.

One failing, slow or missing adapter never prevents the others from
delivering: every fetch runs in its own task under its own deadline, and
failures are collected per platform instead of propagated.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.config.sync import SyncConfig
from creatorsync.domain.errors import (
    AdapterTimeoutError,
    AdapterUnavailableError,
    SyncCancelledError,
)
from creatorsync.domain.model import SyncFrequency

from .result import FetchFailure, SyncResult

if TYPE_CHECKING:
    from collections.abc import Collection

    from creatorsync.domain.model import Identity, PlatformConnection, PlatformSnapshot
    from creatorsync.domain.ports import PlatformAdapter, PlatformAdapters

log = getLogger(__name__)


@dataclass(slots=True)
class SyncCoordinator:
    config: SyncConfig = field(default_factory=SyncConfig)

    def select_connections(
        self,
        identity: Identity,
        *,
        platforms: Collection[str] | None = None,
        force: bool = False,
        now: datetime,
    ) -> tuple[list[PlatformConnection], dict[str, str]]:
        """Pick the connections to fetch this cycle and explain every skip."""

        requested = frozenset(platforms) if platforms is not None else None
        selected: list[PlatformConnection] = []
        skipped: dict[str, str] = {}
        for platform_id in sorted(identity.connected_platforms):
            connection = identity.connected_platforms[platform_id]
            if requested is not None and platform_id not in requested:
                continue
            if not connection.is_fetchable:
                skipped[platform_id] = f"connection is {connection.connection_status}"
                continue
            explicit = requested is not None or force
            settings = connection.sync_settings
            if not explicit and not settings.auto_sync:
                skipped[platform_id] = "auto sync disabled"
                continue
            if not explicit and settings.sync_frequency is SyncFrequency.MANUAL:
                skipped[platform_id] = "manual sync only"
                continue
            if not force and self._recently_synced(connection, now=now):
                skipped[platform_id] = "synced within its interval"
                continue
            selected.append(connection)

        if requested is not None:
            for platform_id in sorted(requested - identity.connected_platforms.keys()):
                skipped[platform_id] = "platform is not connected"
        return selected, skipped

    def _recently_synced(self, connection: PlatformConnection, *, now: datetime) -> bool:
        interval = self.config.sync_intervals.get(connection.sync_settings.sync_frequency)
        if interval is None or connection.last_sync_at is None:
            return False
        return now - connection.last_sync_at < interval

    async def sync(  # noqa: PLR0913
        self,
        identity: Identity,
        adapters: PlatformAdapters,
        *,
        platforms: Collection[str] | None = None,
        force: bool = False,
        cancel: asyncio.Event | None = None,
        now: datetime | None = None,
    ) -> SyncResult:
        """Fetch every selected platform concurrently and collect the outcome.

        Raises ``SyncCancelledError`` if ``cancel`` is set before all fetches
        finish; in-flight fetches are cancelled and nothing is returned.
        """

        started_at = now or datetime.now(tz=UTC)
        connections, skipped = self.select_connections(
            identity, platforms=platforms, force=force, now=started_at
        )
        failed: dict[str, FetchFailure] = {}
        tasks: dict[asyncio.Task[PlatformSnapshot], str] = {}

        for connection in connections:
            adapter = adapters.get(connection.platform_id)
            if adapter is None:
                error = AdapterUnavailableError(connection.platform_id, "no adapter configured")
                failed[connection.platform_id] = FetchFailure.from_exception(
                    connection.platform_id, error
                )
                continue
            task = asyncio.create_task(
                self._fetch(adapter, connection),
                name=f"fetch:{identity.id}:{connection.platform_id}",
            )
            tasks[task] = connection.platform_id

        log.info(
            "Syncing %s: %d platform(s) dispatched, %d skipped",
            identity.id,
            len(tasks),
            len(skipped),
        )
        await self._join(tasks, cancel)

        snapshots: list[PlatformSnapshot] = []
        for task, platform_id in tasks.items():
            exc = task.exception()
            if exc is None:
                snapshots.append(task.result())
                continue
            log.warning("Fetch from %s failed: %s", platform_id, exc)
            failed[platform_id] = FetchFailure.from_exception(platform_id, exc)

        return SyncResult(
            snapshots=tuple(sorted(snapshots, key=lambda snapshot: snapshot.platform_id)),
            failed=dict(sorted(failed.items())),
            skipped=skipped,
            started_at=started_at,
            finished_at=datetime.now(tz=UTC),
        )

    async def _fetch(
        self, adapter: PlatformAdapter, connection: PlatformConnection
    ) -> PlatformSnapshot:
        timeout = self.config.fetch_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                return await adapter.fetch_profile_data(connection)
        except TimeoutError as exc:
            raise AdapterTimeoutError(
                connection.platform_id, f"no response within {timeout:g}s"
            ) from exc

    @staticmethod
    async def _join(
        tasks: dict[asyncio.Task[PlatformSnapshot], str], cancel: asyncio.Event | None
    ) -> None:
        if not tasks:
            if cancel is not None and cancel.is_set():
                raise SyncCancelledError("Sync cancelled before dispatch")
            return
        pending: set[asyncio.Future[object]] = set(tasks)
        watcher: asyncio.Task[bool] | None = None
        if cancel is not None:
            watcher = asyncio.create_task(cancel.wait(), name="sync-cancel-watch")
            pending.add(watcher)
        try:
            while pending - {watcher}:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                if watcher is not None and watcher in done:
                    for task in tasks:
                        task.cancel()
                    await asyncio.gather(*tasks, return_exceptions=True)
                    raise SyncCancelledError("Sync cancelled while fetching")
        finally:
            if watcher is not None and not watcher.done():
                watcher.cancel()
            for task in tasks:
                if not task.done():
                    task.cancel()
