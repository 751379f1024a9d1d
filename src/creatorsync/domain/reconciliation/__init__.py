"""Reconciliation of platform snapshots into the identity's consolidated profile.

Layered flow:
1) screen out snapshots older than stored state
2) collect per-field candidate values and detect conflicts
3) resolve auto-resolvable conflicts, recommend values for the rest
4) merge values and new evidence into a copy of the identity
5) recompute scores and emit an audit report
"""

from __future__ import annotations

from .contracts import (
    CandidateValue,
    ConflictSeverity,
    FieldCandidates,
    FieldKind,
    RecommendedAction,
    ResolutionStrategy,
    ResolvedValue,
    SyncConflict,
)
from .detect import ConflictDetector, DetectionResult, coefficient_of_variation
from .engine import ReconciliationEngine
from .fields import TRACKED_FIELDS, TrackedField, tracked_field
from .report import ConflictReport, SyncReport, SyncResponse
from .resolve import ConflictResolver
from .state import SyncCycle, SyncState

__all__ = [
    "TRACKED_FIELDS",
    "CandidateValue",
    "ConflictDetector",
    "ConflictReport",
    "ConflictResolver",
    "ConflictSeverity",
    "DetectionResult",
    "FieldCandidates",
    "FieldKind",
    "RecommendedAction",
    "ReconciliationEngine",
    "ResolutionStrategy",
    "ResolvedValue",
    "SyncConflict",
    "SyncCycle",
    "SyncReport",
    "SyncResponse",
    "SyncState",
    "TrackedField",
    "coefficient_of_variation",
    "tracked_field",
]
