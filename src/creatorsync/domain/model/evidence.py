"""Evidence value objects: verification methods, authenticity proofs, content credentials."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from creatorsync.domain.errors import InvalidStatusTransitionError

from .enums import ContentType, CredentialStatus, VerificationStatus, VerificationType

if TYPE_CHECKING:
    from collections.abc import Mapping


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class VerificationMethod:
    """One unit of evidence contributing to the verification level."""

    type: VerificationType
    status: VerificationStatus
    confidence: float
    verified_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime | None = None
    metadata: Mapping[str, object] = field(default_factory=dict["str", "object"])

    def is_expired(self, as_of: datetime) -> bool:
        return self.status is VerificationStatus.EXPIRED or (
            self.expires_at is not None and self.expires_at <= as_of
        )

    def is_active(self, as_of: datetime) -> bool:
        """Verified and not expired at ``as_of``."""

        return self.status is VerificationStatus.VERIFIED and not self.is_expired(as_of)

    @property
    def dedupe_key(self) -> tuple[VerificationType, datetime]:
        return (self.type, self.verified_at)


@dataclass(frozen=True, slots=True, kw_only=True)
class DeepfakeAnalysis:
    """Verdict delivered by the external deepfake-detection oracle."""

    is_deepfake: bool
    confidence: float
    detection_methods: tuple[str, ...] = ()
    model_version: str | None = None
    processed_at: datetime | None = None

    @property
    def deepfake_probability(self) -> float:
        """Probability that the content is a deepfake, derived from the verdict."""

        return self.confidence if self.is_deepfake else 1.0 - self.confidence


@dataclass(frozen=True, slots=True, kw_only=True)
class SocialProofData:
    platform_verification: bool = False
    community_vouching: int = 0
    historical_consistency: float = 0.0
    cross_platform_consistency: float = 0.0


@dataclass(frozen=True, slots=True, kw_only=True)
class BlockchainProof:
    transaction_hash: str
    timestamp: datetime
    block_number: int | None = None
    confirmations: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthenticityProof:
    """Structured sub-scores describing whether content is creator-originated."""

    biometric_match: float = 0.0
    metadata_consistency: float = 0.0
    deepfake: DeepfakeAnalysis | None = None
    social_proof: SocialProofData | None = None
    blockchain_proof: BlockchainProof | None = None


# oracle re-adjudication may revisit a verdict, but nothing returns to pending
_CREDENTIAL_TRANSITIONS: Mapping[CredentialStatus, frozenset[CredentialStatus]] = {
    CredentialStatus.PENDING: frozenset(
        {CredentialStatus.VERIFIED, CredentialStatus.DISPUTED, CredentialStatus.FAKE}
    ),
    CredentialStatus.VERIFIED: frozenset({CredentialStatus.DISPUTED}),
    CredentialStatus.DISPUTED: frozenset({CredentialStatus.VERIFIED, CredentialStatus.FAKE}),
    CredentialStatus.FAKE: frozenset(),
}


@dataclass(eq=False, kw_only=True)
class ContentCredential:
    """Content-addressed proof of authorship. Immutable apart from its status."""

    content_hash: str
    authenticity_proof: AuthenticityProof
    content_type: ContentType = ContentType.IMAGE
    original_platform: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    id: str = field(default_factory=lambda: str(uuid4()))
    _verification_status: CredentialStatus = field(default=CredentialStatus.PENDING, repr=False)

    @property
    def verification_status(self) -> CredentialStatus:
        return self._verification_status

    def transition_to(self, status: CredentialStatus) -> bool:
        """Move to ``status``; returns False when already there."""

        if status is self._verification_status:
            return False
        if status not in _CREDENTIAL_TRANSITIONS[self._verification_status]:
            raise InvalidStatusTransitionError(
                f"Credential {self.content_hash[:12]} cannot move from "
                f"{self._verification_status} to {status}"
            )
        self._verification_status = status
        return True
