"""The creator identity aggregate.

The identity exclusively owns its verification methods, platform connections
and content credentials. Derived scores are stored for reads but only ever
written by ``refresh_scores``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar

from creatorsync.domain.errors import IdentityRevokedError

from .enums import IdentityStatus, RiskTier

if TYPE_CHECKING:
    from creatorsync.domain.scoring import EvidenceScorer

    from .evidence import ContentCredential, VerificationMethod
    from .platform import FieldScalar, PlatformConnection


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldValue:
    """Consolidated profile value together with where and when it was observed."""

    value: FieldScalar
    source: str
    observed_at: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class AppliedEvent:
    """A webhook event already reconciled into the identity."""

    platform_id: str
    occurred_at: datetime


@dataclass(eq=False, kw_only=True)
class Identity:
    id: str
    wallet_address: str
    status: IdentityStatus = IdentityStatus.PENDING
    version: int = 1
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime | None = None
    last_sync_at: datetime | None = None
    verification_methods: list[VerificationMethod] = field(
        default_factory=list["VerificationMethod"]
    )
    connected_platforms: dict[str, PlatformConnection] = field(
        default_factory=dict["str", "PlatformConnection"]
    )
    content_credentials: list[ContentCredential] = field(
        default_factory=list["ContentCredential"]
    )
    profile: dict[str, FieldValue] = field(default_factory=dict["str", "FieldValue"])
    applied_events: dict[str, AppliedEvent] = field(default_factory=dict["str", "AppliedEvent"])
    # fields with a manual-review conflict outstanding; re-flagged every cycle until adjudicated
    fields_pending_review: set[str] = field(default_factory=set["str"])

    _verification_level: int = field(default=0, init=False, repr=False)
    _authenticity_score: int = field(default=0, init=False, repr=False)
    _risk_tier: RiskTier = field(default=RiskTier.HIGH, init=False, repr=False)

    _IMMUTABLE: ClassVar[frozenset[str]] = frozenset({"id", "wallet_address"})

    def __setattr__(self, name: str, value: object) -> None:
        if name in self._IMMUTABLE and name in self.__dict__:
            raise AttributeError(f"Identity.{name} is immutable")
        super().__setattr__(name, value)

    @property
    def verification_level(self) -> int:
        return self._verification_level

    @property
    def authenticity_score(self) -> int:
        return self._authenticity_score

    @property
    def risk_tier(self) -> RiskTier:
        return self._risk_tier

    @property
    def applied_event_ids(self) -> frozenset[str]:
        return frozenset(self.applied_events)

    @property
    def is_revoked(self) -> bool:
        return self.status is IdentityStatus.REVOKED

    def ensure_mutable(self) -> None:
        if self.is_revoked:
            raise IdentityRevokedError(f"Identity {self.id} is revoked")

    def refresh_scores(self, scorer: EvidenceScorer, *, as_of: datetime) -> bool:
        """Recompute derived scores from stored evidence; returns True if anything moved."""

        level = scorer.verification_level(self.verification_methods, as_of=as_of)
        score = scorer.authenticity_score(self.content_credentials, as_of=as_of)
        tier = scorer.risk_tier(score)
        changed = (level, score, tier) != (
            self._verification_level,
            self._authenticity_score,
            self._risk_tier,
        )
        self._verification_level = level
        self._authenticity_score = score
        self._risk_tier = tier
        return changed

    def touch(self, now: datetime) -> None:
        """Record a committed mutation."""

        self.updated_at = now
        self.version += 1

    def connection(self, platform_id: str) -> PlatformConnection | None:
        return self.connected_platforms.get(platform_id)

    def verified_platforms(self) -> frozenset[str]:
        return frozenset(
            platform_id
            for platform_id, connection in self.connected_platforms.items()
            if connection.is_verified
        )

    def find_credential(self, content_hash: str) -> ContentCredential | None:
        for credential in self.content_credentials:
            if credential.content_hash == content_hash:
                return credential
        return None

    def profile_value(self, field_name: str) -> FieldScalar | None:
        current = self.profile.get(field_name)
        return None if current is None else current.value

    def record_event(self, event_id: str, *, platform_id: str, occurred_at: datetime) -> None:
        self.applied_events[event_id] = AppliedEvent(
            platform_id=platform_id, occurred_at=occurred_at
        )

    def prune_applied_events(self) -> int:
        """Forget events older than their platform's last sync.

        A replay of such an event is rejected as stale before its id is
        consulted, so only events at or after ``last_sync_at`` need keeping.
        """

        expired = [
            event_id
            for event_id, event in self.applied_events.items()
            if self._superseded(event)
        ]
        for event_id in expired:
            del self.applied_events[event_id]
        return len(expired)

    def _superseded(self, event: AppliedEvent) -> bool:
        connection = self.connection(event.platform_id)
        if connection is None or connection.last_sync_at is None:
            return False
        return event.occurred_at < connection.last_sync_at
