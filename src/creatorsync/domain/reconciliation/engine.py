"""Orchestrator for the reconciliation subsystem.

The engine composes detection, resolution and scoring into one atomic update:
all work happens on a private copy of the identity, so callers either receive
the fully reconciled identity or an exception with their original untouched.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.domain.errors import StaleDataError
from creatorsync.domain.model import ConnectionStatus, FieldValue
from creatorsync.domain.scoring import EvidenceScorer, clamp_confidence

from .contracts import RecommendedAction
from .detect import ConflictDetector
from .report import ConflictReport, SyncReport
from .resolve import ConflictResolver
from .state import SyncState

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from creatorsync.domain.model import (
        ContentCredential,
        Identity,
        PlatformSnapshot,
        VerificationMethod,
    )
    from creatorsync.domain.sync.result import SyncResult

    from .contracts import FieldCandidates, ResolvedValue, SyncConflict

log = getLogger(__name__)


@dataclass(slots=True)
class _Changes:
    updated_fields: list[str] = field(default_factory=list["str"])
    added_methods: list[VerificationMethod] = field(default_factory=list["VerificationMethod"])
    added_credentials: list[ContentCredential] = field(
        default_factory=list["ContentCredential"]
    )
    touched: bool = False


@dataclass(slots=True)
class ReconciliationEngine:
    """Run reconciliation from fetched snapshots to an updated identity."""

    scorer: EvidenceScorer = field(default_factory=EvidenceScorer)
    detector: ConflictDetector = field(default_factory=ConflictDetector)
    resolver: ConflictResolver = field(default_factory=ConflictResolver)

    def run(
        self, identity: Identity, sync_result: SyncResult, *, as_of: datetime
    ) -> tuple[Identity, SyncReport]:
        """Screen, detect and reconcile in one step."""

        fresh, stale = self.screen(identity, sync_result.snapshots)
        detection = self.detector.analyze(identity, fresh)
        return self.reconcile(
            identity,
            sync_result,
            detection.conflicts,
            uncontested=detection.uncontested,
            snapshots=fresh,
            errors=[str(error) for error in stale],
            as_of=as_of,
        )

    @staticmethod
    def screen(
        identity: Identity, snapshots: Iterable[PlatformSnapshot]
    ) -> tuple[list[PlatformSnapshot], list[StaleDataError]]:
        """Split snapshots into mergeable ones and those older than stored state."""

        fresh: list[PlatformSnapshot] = []
        stale: list[StaleDataError] = []
        for snapshot in snapshots:
            connection = identity.connection(snapshot.platform_id)
            if connection is None:
                stale.append(StaleDataError(snapshot.platform_id, "platform is not connected"))
                continue
            last = connection.last_sync_at
            if last is not None and snapshot.fetched_at < last:
                log.warning(
                    "Discarding stale %s snapshot from %s (stored %s)",
                    snapshot.platform_id,
                    snapshot.fetched_at.isoformat(),
                    last.isoformat(),
                )
                stale.append(
                    StaleDataError(
                        snapshot.platform_id,
                        f"snapshot from {snapshot.fetched_at.isoformat()} "
                        f"is older than last sync {last.isoformat()}",
                    )
                )
                continue
            fresh.append(snapshot)
        return fresh, stale

    def reconcile(  # noqa: PLR0913
        self,
        identity: Identity,
        sync_result: SyncResult,
        conflicts: Sequence[SyncConflict],
        *,
        as_of: datetime,
        uncontested: Sequence[FieldCandidates] = (),
        snapshots: Sequence[PlatformSnapshot] | None = None,
        errors: Sequence[str] = (),
    ) -> tuple[Identity, SyncReport]:
        """Merge resolved values and new evidence into a copy of ``identity``.

        Manual-review conflicts are reported, never applied. When every
        dispatched fetch failed the cycle fails and ``identity`` is returned
        as-is.
        """

        identity.ensure_mutable()
        merged_snapshots = sync_result.snapshots if snapshots is None else tuple(snapshots)
        report_errors = list(errors)

        if sync_result.dispatched and not sync_result.succeeded:
            log.warning("Sync for %s failed on every platform", identity.id)
            return identity, self._report(
                identity,
                sync_result,
                state=SyncState.FAILED,
                synced=(),
                errors=report_errors,
            )

        working = copy.deepcopy(identity)
        changes = _Changes()

        for group in uncontested:
            resolution = self.resolver.settle(group.field, group.candidates, working)
            self._apply_value(working, resolution, changes, as_of=as_of)
            if group.field in working.fields_pending_review:
                working.fields_pending_review.discard(group.field)
                changes.touched = True

        conflict_reports: list[ConflictReport] = []
        for conflict in conflicts:
            resolution = self.resolver.resolve(conflict, working)
            report = ConflictReport.from_conflict(conflict, resolution)
            conflict_reports.append(report)
            if report.recommended_action is RecommendedAction.AUTO_APPLIED:
                self._apply_value(working, resolution, changes, as_of=as_of)
                if conflict.field in working.fields_pending_review:
                    working.fields_pending_review.discard(conflict.field)
                    changes.touched = True
                continue
            log.info(
                "Conflict %s on %s left for manual review (%s)",
                conflict.kind,
                identity.id,
                ", ".join(conflict.platforms),
            )
            if conflict.field not in working.fields_pending_review:
                working.fields_pending_review.add(conflict.field)
                changes.touched = True

        for snapshot in merged_snapshots:
            self._merge_snapshot(working, snapshot, changes)

        scores_moved = working.refresh_scores(self.scorer, as_of=as_of)
        if merged_snapshots:
            latest = max(snapshot.fetched_at for snapshot in merged_snapshots)
            if working.last_sync_at is None or latest > working.last_sync_at:
                working.last_sync_at = latest
        if changes.touched or changes.updated_fields or scores_moved:
            working.touch(as_of)

        manual = any(
            report.recommended_action is RecommendedAction.MANUAL_REVIEW
            for report in conflict_reports
        )
        report = self._report(
            working,
            sync_result,
            state=SyncState.PARTIALLY_COMMITTED if manual else SyncState.COMMITTED,
            synced=tuple(snapshot.platform_id for snapshot in merged_snapshots),
            errors=report_errors,
            updated_fields=tuple(changes.updated_fields),
            conflicts=tuple(conflict_reports),
            added_methods=tuple(changes.added_methods),
            added_credentials=tuple(changes.added_credentials),
        )
        return working, report

    @staticmethod
    def _apply_value(
        working: Identity,
        resolution: ResolvedValue,
        changes: _Changes,
        *,
        as_of: datetime,
    ) -> None:
        if working.profile_value(resolution.field) == resolution.value:
            return
        working.profile[resolution.field] = FieldValue(
            value=resolution.value,
            source=resolution.source_platform or str(resolution.strategy),
            observed_at=as_of,
        )
        if resolution.field not in changes.updated_fields:
            changes.updated_fields.append(resolution.field)

    @staticmethod
    def _merge_snapshot(working: Identity, snapshot: PlatformSnapshot, changes: _Changes) -> None:
        connection = working.connection(snapshot.platform_id)
        if connection is None:
            return
        if connection.profile != snapshot.profile:
            connection.profile = snapshot.profile
            changes.touched = True
        if snapshot.metrics is not None and connection.metrics != snapshot.metrics:
            connection.metrics = snapshot.metrics
            changes.touched = True
        if connection.last_sync_at is None or snapshot.fetched_at > connection.last_sync_at:
            connection.last_sync_at = snapshot.fetched_at
        if (
            snapshot.profile.platform_verified
            and connection.connection_status is ConnectionStatus.CONNECTED
        ):
            connection.connection_status = ConnectionStatus.VERIFIED
            changes.touched = True

        known_methods = {method.dedupe_key for method in working.verification_methods}
        for method in snapshot.verification_methods:
            if method.dedupe_key in known_methods:
                continue
            confidence, clamped = clamp_confidence(method.confidence)
            if clamped:
                log.warning(
                    "Clamped %s confidence %r from %s into [0, 1]",
                    method.type,
                    method.confidence,
                    snapshot.platform_id,
                )
                method = replace(method, confidence=confidence)  # noqa: PLW2901
            working.verification_methods.append(method)
            known_methods.add(method.dedupe_key)
            changes.added_methods.append(method)
            changes.touched = True

        for credential in snapshot.content_credentials:
            if working.find_credential(credential.content_hash) is not None:
                continue
            added = copy.deepcopy(credential)
            working.content_credentials.append(added)
            changes.added_credentials.append(added)
            changes.touched = True

    @staticmethod
    def _report(  # noqa: PLR0913
        identity: Identity,
        sync_result: SyncResult,
        *,
        state: SyncState,
        synced: tuple[str, ...],
        errors: Sequence[str],
        updated_fields: tuple[str, ...] = (),
        conflicts: tuple[ConflictReport, ...] = (),
        added_methods: tuple[VerificationMethod, ...] = (),
        added_credentials: tuple[ContentCredential, ...] = (),
    ) -> SyncReport:
        return SyncReport(
            identity_id=identity.id,
            state=state,
            synced_platforms=synced,
            failed_platforms=dict(sync_result.failed),
            skipped_platforms=dict(sync_result.skipped),
            updated_fields=updated_fields,
            conflicts=conflicts,
            errors=tuple(errors),
            new_verification_methods=added_methods,
            new_content=added_credentials,
            verification_level=identity.verification_level,
            authenticity_score=identity.authenticity_score,
        )
