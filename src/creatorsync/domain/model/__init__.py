"""Public domain model surface."""

from __future__ import annotations

from .enums import (
    ConnectionStatus,
    ContentType,
    CredentialStatus,
    IdentityStatus,
    RiskTier,
    SyncFrequency,
    VerificationStatus,
    VerificationType,
)
from .evidence import (
    AuthenticityProof,
    BlockchainProof,
    ContentCredential,
    DeepfakeAnalysis,
    SocialProofData,
    VerificationMethod,
)
from .identity import AppliedEvent, FieldValue, Identity
from .platform import (
    FieldScalar,
    NormalizedMetrics,
    PlatformConnection,
    PlatformProfile,
    PlatformSnapshot,
    SyncSettings,
)

__all__ = [  # noqa: RUF022
    # enums
    "ConnectionStatus",
    "ContentType",
    "CredentialStatus",
    "IdentityStatus",
    "RiskTier",
    "SyncFrequency",
    "VerificationStatus",
    "VerificationType",
    # evidence
    "AuthenticityProof",
    "BlockchainProof",
    "ContentCredential",
    "DeepfakeAnalysis",
    "SocialProofData",
    "VerificationMethod",
    # identity
    "AppliedEvent",
    "FieldValue",
    "Identity",
    # platforms
    "FieldScalar",
    "NormalizedMetrics",
    "PlatformConnection",
    "PlatformProfile",
    "PlatformSnapshot",
    "SyncSettings",
]
