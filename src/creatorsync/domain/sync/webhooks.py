"""Real-time platform updates applied through the reconciliation engine."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.domain.errors import ValidationError
from creatorsync.domain.model import PlatformProfile, PlatformSnapshot
from creatorsync.domain.reconciliation import (
    ReconciliationEngine,
    SyncCycle,
    SyncReport,
    SyncState,
)

from .result import SyncResult

if TYPE_CHECKING:
    from datetime import datetime

    from creatorsync.domain.model import FieldScalar, Identity, NormalizedMetrics

log = getLogger(__name__)

_PROFILE_FIELDS = frozenset(f.name for f in dataclasses.fields(PlatformProfile)) - {
    "platform_verified"
}


@dataclass(frozen=True, slots=True, kw_only=True)
class PlatformUpdateEvent:
    """One platform's push notification about changed profile fields."""

    event_id: str
    platform_id: str
    occurred_at: datetime
    changes: Mapping[str, FieldScalar] = field(default_factory=dict["str", "FieldScalar"])
    metrics: NormalizedMetrics | None = None
    platform_verified: bool | None = None

    def __post_init__(self) -> None:
        if not self.event_id:
            raise ValidationError("Webhook event id must not be empty")
        unknown = set(self.changes) - _PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown profile fields in webhook: {sorted(unknown)}")


def event_snapshot(identity: Identity, event: PlatformUpdateEvent) -> PlatformSnapshot:
    """Overlay the event's changes on the connection's last-known profile."""

    connection = identity.connection(event.platform_id)
    if connection is None or not connection.is_fetchable:
        raise ValidationError(
            f"Webhook for {event.platform_id!r} but the platform is not connected"
        )
    base = connection.profile or PlatformProfile()
    overrides: dict[str, object] = dict(event.changes)
    if event.platform_verified is not None:
        overrides["platform_verified"] = event.platform_verified
    return PlatformSnapshot(
        platform_id=event.platform_id,
        fetched_at=event.occurred_at,
        profile=dataclasses.replace(base, **overrides),
        metrics=event.metrics,
        event_id=event.event_id,
    )


def context_snapshots(identity: Identity, *, exclude: str) -> list[PlatformSnapshot]:
    """Last-known profiles of the other platforms, for cross-platform comparison."""

    snapshots: list[PlatformSnapshot] = []
    for platform_id, connection in sorted(identity.connected_platforms.items()):
        if platform_id == exclude or not connection.is_fetchable:
            continue
        if connection.profile is None or connection.last_sync_at is None:
            continue
        snapshots.append(
            PlatformSnapshot(
                platform_id=platform_id,
                fetched_at=connection.last_sync_at,
                profile=connection.profile,
            )
        )
    return snapshots


def apply_webhook_event(
    identity: Identity,
    event: PlatformUpdateEvent,
    *,
    engine: ReconciliationEngine,
    now: datetime,
) -> tuple[Identity, SyncReport]:
    """Reconcile one webhook event; replays of an applied event change nothing."""

    identity.ensure_mutable()
    cycle = SyncCycle(identity.id)
    if event.event_id in identity.applied_event_ids:
        log.info("Ignoring replayed webhook event %s for %s", event.event_id, identity.id)
        return identity, SyncReport(
            identity_id=identity.id,
            state=SyncState.COMMITTED,
            verification_level=identity.verification_level,
            authenticity_score=identity.authenticity_score,
            duplicate_event=True,
        )

    snapshot = event_snapshot(identity, event)
    cycle.advance(SyncState.RECONCILING)
    fresh, stale = engine.screen(identity, [snapshot])
    if not fresh:
        cycle.advance(SyncState.FAILED)
        return identity, SyncReport(
            identity_id=identity.id,
            state=cycle.state,
            errors=tuple(str(error) for error in stale),
            verification_level=identity.verification_level,
            authenticity_score=identity.authenticity_score,
        )

    detection = engine.detector.analyze(
        identity, [snapshot, *context_snapshots(identity, exclude=event.platform_id)]
    )
    updated, report = engine.reconcile(
        identity,
        SyncResult(snapshots=(snapshot,), started_at=now, finished_at=now),
        detection.conflicts,
        uncontested=detection.uncontested,
        snapshots=fresh,
        as_of=now,
    )
    cycle.advance(report.state)
    updated.record_event(
        event.event_id, platform_id=event.platform_id, occurred_at=event.occurred_at
    )
    if pruned := updated.prune_applied_events():
        log.debug("Forgot %d superseded webhook event id(s) for %s", pruned, identity.id)
    if updated.version == identity.version:
        updated.touch(now)
    log.info(
        "Applied webhook %s from %s to %s: updated=%s",
        event.event_id,
        event.platform_id,
        identity.id,
        ", ".join(report.updated_fields) or "-",
    )
    return updated, report
