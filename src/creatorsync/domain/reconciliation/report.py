"""Audit-facing output of a reconciliation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .contracts import RecommendedAction
from .state import SyncState

if TYPE_CHECKING:
    from collections.abc import Mapping

    from creatorsync.domain.model import ContentCredential, VerificationMethod
    from creatorsync.domain.sync.result import FetchFailure

    from .contracts import CandidateValue, ConflictSeverity, ResolvedValue, SyncConflict


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictReport:
    field: str
    kind: str
    severity: ConflictSeverity
    candidate_values: tuple[CandidateValue, ...]
    resolution: ResolvedValue
    recommended_action: RecommendedAction

    @classmethod
    def from_conflict(cls, conflict: SyncConflict, resolution: ResolvedValue) -> ConflictReport:
        return cls(
            field=conflict.field,
            kind=conflict.kind,
            severity=conflict.severity,
            candidate_values=conflict.candidates,
            resolution=resolution,
            recommended_action=(
                RecommendedAction.AUTO_APPLIED
                if conflict.auto_resolvable
                else RecommendedAction.MANUAL_REVIEW
            ),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "field": self.field,
            "kind": self.kind,
            "severity": str(self.severity),
            "candidate_values": [
                {
                    "platform": candidate.platform_id,
                    "value": candidate.value,
                    "observed_at": candidate.observed_at.isoformat(),
                }
                for candidate in self.candidate_values
            ],
            "resolution": {
                "value": self.resolution.value,
                "strategy": str(self.resolution.strategy),
                "confidence": self.resolution.confidence,
                "reasoning": self.resolution.reasoning,
                "source_platform": self.resolution.source_platform,
            },
            "recommended_action": str(self.recommended_action),
        }


@dataclass(slots=True, kw_only=True)
class SyncReport:
    identity_id: str
    state: SyncState
    synced_platforms: tuple[str, ...] = ()
    failed_platforms: Mapping[str, FetchFailure] = field(
        default_factory=dict["str", "FetchFailure"]
    )
    skipped_platforms: Mapping[str, str] = field(default_factory=dict["str", "str"])
    updated_fields: tuple[str, ...] = ()
    conflicts: tuple[ConflictReport, ...] = ()
    errors: tuple[str, ...] = ()
    new_verification_methods: tuple[VerificationMethod, ...] = ()
    new_content: tuple[ContentCredential, ...] = ()
    verification_level: int = 0
    authenticity_score: int = 0
    duplicate_event: bool = False

    @property
    def success(self) -> bool:
        return self.state in {SyncState.COMMITTED, SyncState.PARTIALLY_COMMITTED}

    @property
    def manual_conflicts(self) -> tuple[ConflictReport, ...]:
        return tuple(
            report
            for report in self.conflicts
            if report.recommended_action is RecommendedAction.MANUAL_REVIEW
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncResponse:
    """Shape handed back to the API layer for a sync request."""

    success: bool
    state: SyncState
    synced_platforms: tuple[str, ...]
    failed_platforms: Mapping[str, str]
    conflicts: tuple[ConflictReport, ...]
    updated_fields: tuple[str, ...]
    errors: tuple[str, ...] = ()
    new_content: tuple[ContentCredential, ...] = ()

    @classmethod
    def from_report(cls, report: SyncReport) -> SyncResponse:
        return cls(
            success=report.success,
            state=report.state,
            synced_platforms=report.synced_platforms,
            failed_platforms={
                platform_id: failure.error_class
                for platform_id, failure in report.failed_platforms.items()
            },
            conflicts=report.conflicts,
            updated_fields=report.updated_fields,
            errors=report.errors,
            new_content=report.new_content,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "state": str(self.state),
            "synced_platforms": list(self.synced_platforms),
            "failed_platforms": dict(self.failed_platforms),
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
            "updated_fields": list(self.updated_fields),
            "errors": list(self.errors),
            "new_content": [_credential_dict(credential) for credential in self.new_content],
        }


def _credential_dict(credential: ContentCredential) -> dict[str, object]:
    return {
        "id": credential.id,
        "content_hash": credential.content_hash,
        "content_type": str(credential.content_type),
        "original_platform": credential.original_platform,
        "created_at": credential.created_at.isoformat(),
        "verification_status": str(credential.verification_status),
    }
