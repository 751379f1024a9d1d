"""Shared reconciliation contract components.

This module intentionally holds only value types passed between the
detector, resolver and engine; no behaviour beyond trivial accessors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from creatorsync.domain.model import FieldScalar


class FieldKind(StrEnum):
    NUMERIC = "numeric"
    TEXT = "text"


class ConflictSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ResolutionStrategy(StrEnum):
    """Closed set of resolution strategies, dispatched with an exhaustive match."""

    LATEST_TIMESTAMP = "latest_timestamp"
    VERIFIED_PLATFORM_PRIORITY = "verified_platform_priority"
    LONGEST_VALUE = "longest_value"
    WEIGHTED_AVERAGE = "weighted_average"


class RecommendedAction(StrEnum):
    AUTO_APPLIED = "auto_applied"
    MANUAL_REVIEW = "manual_review"


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateValue:
    """One platform's value for a tracked field in this cycle."""

    platform_id: str
    value: FieldScalar
    observed_at: datetime
    # platform reported something different from its last-known value
    changed: bool = True
    # follower count of the reporting platform, 1 when unknown
    weight: float = 1.0


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldCandidates:
    """Values collected for one field that did not amount to a conflict."""

    field: str
    candidates: tuple[CandidateValue, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncConflict:
    field: str
    kind: str
    severity: ConflictSeverity
    auto_resolvable: bool
    candidates: tuple[CandidateValue, ...]
    coefficient_of_variation: float | None = None

    @property
    def platforms(self) -> tuple[str, ...]:
        return tuple(candidate.platform_id for candidate in self.candidates)


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedValue:
    field: str
    value: FieldScalar
    strategy: ResolutionStrategy
    confidence: float
    reasoning: str
    source_platform: str | None = None
