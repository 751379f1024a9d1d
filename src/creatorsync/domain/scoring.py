"""Evidence scoring: verification level and content authenticity.

Both scores are pure functions of the stored evidence and an ``as_of``
timestamp. Nothing here reads the wall clock, so re-running the scorer over
the same evidence always reproduces the same numbers.

Verification level
    Sum of ``weight × confidence`` over methods that are verified and not
    expired at ``as_of``; clamped to [0, 100] and floored once at the end.

Authenticity
    Weighted blend of five components, each normalised to [0, 100]:
    biometric match, metadata consistency, inverse deepfake probability,
    social proof and blockchain-anchor recency.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from creatorsync.config.scoring import ScoringConfig
from creatorsync.domain.errors import InvalidConfidenceError
from creatorsync.domain.model.enums import CredentialStatus, RiskTier

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from creatorsync.domain.model import (
        AuthenticityProof,
        BlockchainProof,
        ContentCredential,
        DeepfakeAnalysis,
        SocialProofData,
        VerificationMethod,
    )


def clamp_confidence(value: object) -> tuple[float, bool]:
    """Return ``value`` clamped into [0, 1] and whether clamping was needed.

    Raises ``InvalidConfidenceError`` when the value is not a finite number.
    """

    if isinstance(value, bool):
        raise InvalidConfidenceError(f"Confidence must be numeric, got {value!r}")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidConfidenceError(f"Confidence must be numeric, got {value!r}") from exc
    if math.isnan(number):
        raise InvalidConfidenceError("Confidence must not be NaN")
    clamped = min(1.0, max(0.0, number))
    return clamped, clamped != number


def _unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def _bounded(total: float) -> int:
    # round away binary noise such as 0.29 * 100 == 28.999999999999996 before flooring
    return math.floor(round(min(100.0, max(0.0, total)), 9))


@dataclass(frozen=True, slots=True)
class AuthenticityAssessment:
    score: int
    risk_tier: RiskTier
    components: Mapping[str, float] = field(default_factory=dict["str", "float"])


@dataclass(frozen=True, slots=True)
class EvidenceScorer:
    config: ScoringConfig = field(default_factory=ScoringConfig)

    def verification_level(
        self, methods: Iterable[VerificationMethod], *, as_of: datetime
    ) -> int:
        total = 0.0
        for method in methods:
            if not method.is_active(as_of):
                continue
            weight = self.config.method_weights.get(method.type, 0.0)
            total += weight * _unit(method.confidence)
        return _bounded(total)

    def risk_tier(self, score: int) -> RiskTier:
        if score < self.config.high_risk_below:
            return RiskTier.HIGH
        if score > self.config.low_risk_above:
            return RiskTier.LOW
        return RiskTier.MEDIUM

    def assess_proof(self, proof: AuthenticityProof, *, as_of: datetime) -> AuthenticityAssessment:
        components = {
            "biometric": _unit(proof.biometric_match) * 100.0,
            "metadata": _unit(proof.metadata_consistency) * 100.0,
            "deepfake": self._deepfake_component(proof.deepfake),
            "social": self._social_component(proof.social_proof),
            "blockchain": self._blockchain_component(proof.blockchain_proof, as_of=as_of),
        }
        weights = self.config.proof_weights
        total = sum(weights.get(name, 0.0) * value for name, value in components.items())
        score = _bounded(total)
        return AuthenticityAssessment(
            score=score,
            risk_tier=self.risk_tier(score),
            components=components,
        )

    def authenticity_score(
        self, credentials: Iterable[ContentCredential], *, as_of: datetime
    ) -> int:
        """Identity-level authenticity: mean credential score, fakes counting as zero."""

        scores: list[int] = []
        for credential in credentials:
            if credential.verification_status is CredentialStatus.FAKE:
                scores.append(0)
                continue
            scores.append(self.assess_proof(credential.authenticity_proof, as_of=as_of).score)
        if not scores:
            return 0
        return _bounded(sum(scores) / len(scores))

    @staticmethod
    def _deepfake_component(analysis: DeepfakeAnalysis | None) -> float:
        if analysis is None:
            return 0.0
        probability = _unit(analysis.deepfake_probability)
        return (1.0 - probability) * 100.0

    def _social_component(self, social: SocialProofData | None) -> float:
        if social is None:
            return 0.0
        cap = self.config.vouching_cap
        parts = (
            100.0 if social.platform_verification else 0.0,
            min(max(social.community_vouching, 0), cap) * (100.0 / cap),
            _unit(social.historical_consistency) * 100.0,
            _unit(social.cross_platform_consistency) * 100.0,
        )
        return sum(parts) / len(parts)

    def _blockchain_component(self, proof: BlockchainProof | None, *, as_of: datetime) -> float:
        if proof is None or proof.confirmations < 1:
            return 0.0
        age_days = (as_of - proof.timestamp).total_seconds() / 86400.0
        full = self.config.blockchain_full_credit_days
        zero = self.config.blockchain_zero_credit_days
        if age_days <= full:
            return 100.0
        if age_days >= zero:
            return 0.0
        return 100.0 * (zero - age_days) / (zero - full)
