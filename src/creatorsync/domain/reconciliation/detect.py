"""Conflict detection across platform snapshots.

Responsibilities of this stage:
- collect per-field candidate values from the snapshots of one cycle
- flag divergences that need a resolution strategy or a human
- pass everything else through as uncontested candidate groups

Rules:
- a field reported by a single platform is never a conflict
- numeric fields conflict when the coefficient of variation (population
  standard deviation over mean) exceeds the configured threshold
- text fields conflict when normalized values differ *and* more than one
  platform changed its value since the previous sync
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.config.sync import SyncConfig

from .contracts import (
    CandidateValue,
    ConflictSeverity,
    FieldCandidates,
    FieldKind,
    SyncConflict,
)
from .fields import TRACKED_FIELDS, TrackedField, comparable, conflict_kind

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from creatorsync.domain.model import Identity, PlatformSnapshot

log = getLogger(__name__)


@dataclass(slots=True)
class DetectionResult:
    conflicts: list[SyncConflict] = field(default_factory=list["SyncConflict"])
    uncontested: list[FieldCandidates] = field(default_factory=list["FieldCandidates"])


def coefficient_of_variation(values: Sequence[float]) -> float:
    if len(values) < 2:  # noqa: PLR2004
        return 0.0
    mean = statistics.fmean(values)
    spread = statistics.pstdev(values)
    if mean == 0:
        return 0.0 if spread == 0 else math.inf
    return spread / abs(mean)


@dataclass(slots=True)
class ConflictDetector:
    config: SyncConfig = field(default_factory=SyncConfig)

    def detect(
        self, current: Identity, snapshots: Iterable[PlatformSnapshot]
    ) -> list[SyncConflict]:
        return self.analyze(current, snapshots).conflicts

    def analyze(self, current: Identity, snapshots: Iterable[PlatformSnapshot]) -> DetectionResult:
        result = DetectionResult()
        grouped = self.collect_candidates(current, snapshots)
        for name, candidates in grouped.items():
            tracked = TRACKED_FIELDS[name]
            if len(candidates) == 1:
                result.uncontested.append(FieldCandidates(field=name, candidates=candidates))
                continue
            if tracked.kind is FieldKind.NUMERIC:
                self._analyze_numeric(tracked, candidates, result)
            else:
                self._analyze_text(tracked, candidates, result)
        return result

    def direct_updates(
        self, current: Identity, snapshots: Iterable[PlatformSnapshot]
    ) -> list[FieldCandidates]:
        """Candidate groups that need no conflict handling."""

        return self.analyze(current, snapshots).uncontested

    def collect_candidates(
        self, current: Identity, snapshots: Iterable[PlatformSnapshot]
    ) -> dict[str, tuple[CandidateValue, ...]]:
        """Group this cycle's reported values by field, ordered by platform id."""

        grouped: dict[str, list[CandidateValue]] = {}
        for snapshot in sorted(snapshots, key=lambda snap: snap.platform_id):
            connection = current.connection(snapshot.platform_id)
            previous = connection.profile if connection is not None else None
            weight = float(snapshot.profile.follower_count or 0) or 1.0
            for name in snapshot.profile.reported_fields():
                tracked = TRACKED_FIELDS.get(name)
                if tracked is None:
                    continue
                if connection is not None and not connection.sync_settings.allows(name):
                    continue
                value = snapshot.profile.value_of(name)
                if value is None:
                    continue
                prior = previous.value_of(name) if previous is not None else None
                changed = (
                    name in current.fields_pending_review
                    or prior is None
                    or comparable(tracked, prior) != comparable(tracked, value)
                )
                grouped.setdefault(name, []).append(
                    CandidateValue(
                        platform_id=snapshot.platform_id,
                        value=value,
                        observed_at=snapshot.fetched_at,
                        changed=changed,
                        weight=weight,
                    )
                )
        return {name: tuple(values) for name, values in grouped.items()}

    def _analyze_numeric(
        self,
        tracked: TrackedField,
        candidates: tuple[CandidateValue, ...],
        result: DetectionResult,
    ) -> None:
        cv = coefficient_of_variation([float(candidate.value) for candidate in candidates])
        if cv <= self.config.cv_threshold:
            result.uncontested.append(FieldCandidates(field=tracked.name, candidates=candidates))
            return
        log.debug("Numeric variance on %s: cv=%.3f", tracked.name, cv)
        result.conflicts.append(
            SyncConflict(
                field=tracked.name,
                kind=conflict_kind(tracked),
                severity=ConflictSeverity.MEDIUM,
                auto_resolvable=True,
                candidates=candidates,
                coefficient_of_variation=round(cv, 6),
            )
        )

    @staticmethod
    def _analyze_text(
        tracked: TrackedField,
        candidates: tuple[CandidateValue, ...],
        result: DetectionResult,
    ) -> None:
        distinct = {comparable(tracked, candidate.value) for candidate in candidates}
        if len(distinct) == 1:
            result.uncontested.append(FieldCandidates(field=tracked.name, candidates=candidates))
            return

        changed = tuple(candidate for candidate in candidates if candidate.changed)
        if len(changed) > 1:
            result.conflicts.append(
                SyncConflict(
                    field=tracked.name,
                    kind=conflict_kind(tracked),
                    severity=ConflictSeverity.HIGH,
                    auto_resolvable=False,
                    candidates=candidates,
                )
            )
        elif changed:
            # only one platform moved; its new value is a single-source update
            result.uncontested.append(FieldCandidates(field=tracked.name, candidates=changed))
