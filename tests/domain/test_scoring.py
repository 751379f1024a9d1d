from __future__ import annotations

import itertools
from datetime import timedelta

import pytest

from creatorsync.domain.errors import InvalidConfidenceError
from creatorsync.domain.model import (
    AuthenticityProof,
    BlockchainProof,
    ContentCredential,
    CredentialStatus,
    RiskTier,
    VerificationStatus,
    VerificationType,
)
from creatorsync.domain.scoring import EvidenceScorer, clamp_confidence
from tests.helpers.identities import NOW, make_method, make_proof


def test_single_biometric_method_scores_nineteen(scorer: EvidenceScorer) -> None:
    methods = [make_method(VerificationType.BIOMETRIC, confidence=0.95)]

    assert scorer.verification_level(methods, as_of=NOW) == 19


def test_adding_platform_verification_floors_once_on_the_sum(scorer: EvidenceScorer) -> None:
    methods = [
        make_method(VerificationType.BIOMETRIC, confidence=0.95),
        make_method(VerificationType.PLATFORM_VERIFICATION, confidence=1.0),
    ]

    assert scorer.verification_level(methods, as_of=NOW) == 44


def test_only_verified_unexpired_methods_count(scorer: EvidenceScorer) -> None:
    methods = [
        make_method(VerificationType.GOVERNMENT_ID, confidence=1.0, expires_at=NOW),
        make_method(VerificationType.SOCIAL_PROOF, status=VerificationStatus.PENDING),
        make_method(VerificationType.COMMUNITY_VOUCHING, status=VerificationStatus.FAILED),
        make_method(VerificationType.BIOMETRIC, confidence=1.0, expires_at=NOW + timedelta(1)),
    ]

    assert scorer.verification_level(methods, as_of=NOW) == 20


def test_verification_level_is_capped_at_one_hundred(scorer: EvidenceScorer) -> None:
    methods = [make_method(member, confidence=1.0) for member in VerificationType] * 3

    assert scorer.verification_level(methods, as_of=NOW) == 100
    assert scorer.verification_level([], as_of=NOW) == 0


def test_adding_a_verified_method_never_lowers_the_level(scorer: EvidenceScorer) -> None:
    pool = [
        make_method(member, confidence=confidence)
        for member, confidence in itertools.product(VerificationType, (0.0, 0.33, 0.71, 1.0))
    ]
    for size in range(4):
        for base in itertools.combinations(pool, size):
            before = scorer.verification_level(base, as_of=NOW)
            for extra in pool:
                after = scorer.verification_level([*base, extra], as_of=NOW)
                assert 0 <= before <= after <= 100


def test_strong_proof_scores_low_risk(scorer: EvidenceScorer) -> None:
    assessment = scorer.assess_proof(make_proof(), as_of=NOW)

    assert assessment.score == 93
    assert assessment.risk_tier is RiskTier.LOW
    assert assessment.components["deepfake"] == pytest.approx(90.0)
    assert assessment.components["blockchain"] == 100.0


def test_deepfake_verdict_inverts_the_component(scorer: EvidenceScorer) -> None:
    flagged = scorer.assess_proof(
        make_proof(is_deepfake=True, deepfake_confidence=0.8), as_of=NOW
    )

    assert flagged.components["deepfake"] == pytest.approx(20.0)


def test_blockchain_credit_decays_linearly(scorer: EvidenceScorer) -> None:
    def anchored(days: float, confirmations: int = 6) -> AuthenticityProof:
        return AuthenticityProof(
            blockchain_proof=BlockchainProof(
                transaction_hash="0xfeed",
                timestamp=NOW - timedelta(days=days),
                confirmations=confirmations,
            )
        )

    assert scorer.assess_proof(anchored(197.5), as_of=NOW).components["blockchain"] == (
        pytest.approx(50.0)
    )
    assert scorer.assess_proof(anchored(400), as_of=NOW).components["blockchain"] == 0.0
    assert scorer.assess_proof(anchored(1, confirmations=0), as_of=NOW).score == 0


def test_identity_authenticity_counts_fake_credentials_as_zero(scorer: EvidenceScorer) -> None:
    genuine = ContentCredential(content_hash="a" * 64, authenticity_proof=make_proof())
    fake = ContentCredential(
        content_hash="b" * 64,
        authenticity_proof=make_proof(),
        _verification_status=CredentialStatus.FAKE,
    )

    assert scorer.authenticity_score([genuine], as_of=NOW) == 93
    assert scorer.authenticity_score([genuine, fake], as_of=NOW) == 46
    assert scorer.authenticity_score([], as_of=NOW) == 0


@pytest.mark.parametrize(
    ("score", "tier"),
    [(0, RiskTier.HIGH), (39, RiskTier.HIGH), (40, RiskTier.MEDIUM), (75, RiskTier.MEDIUM),
     (76, RiskTier.LOW), (100, RiskTier.LOW)],
)
def test_risk_tier_is_a_pure_function_of_the_score(
    scorer: EvidenceScorer, score: int, tier: RiskTier
) -> None:
    assert scorer.risk_tier(score) is tier


def test_clamp_confidence() -> None:
    assert clamp_confidence("0.5") == (0.5, False)
    assert clamp_confidence(1.5) == (1.0, True)
    assert clamp_confidence(-2) == (0.0, True)
    for bad in ("high", None, True, float("nan")):
        with pytest.raises(InvalidConfidenceError):
            clamp_confidence(bad)
