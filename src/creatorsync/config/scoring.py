"""Evidence scoring weights and thresholds."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_METHOD_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "biometric": 20.0,
        "government_id": 30.0,
        "social_proof": 15.0,
        "platform_verification": 25.0,
        "community_vouching": 10.0,
    }
)

DEFAULT_PROOF_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "biometric": 0.25,
        "metadata": 0.15,
        "deepfake": 0.30,
        "social": 0.20,
        "blockchain": 0.10,
    }
)


@dataclass(frozen=True, slots=True)
class ScoringConfig:
    method_weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_METHOD_WEIGHTS)
    proof_weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_PROOF_WEIGHTS)
    # risk tier bands: score < high_risk_below -> high, score > low_risk_above -> low
    high_risk_below: int = 40
    low_risk_above: int = 75
    blockchain_full_credit_days: float = 30.0
    blockchain_zero_credit_days: float = 365.0
    vouching_cap: int = 10
    credential_auto_verify_above: int = 80
    registration_biometric_minimum: float = 0.95


def get_scoring_config() -> ScoringConfig:
    return ScoringConfig()
