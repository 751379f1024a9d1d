"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class VerificationType(StrEnum):
    BIOMETRIC = "biometric"
    GOVERNMENT_ID = "government_id"
    SOCIAL_PROOF = "social_proof"
    PLATFORM_VERIFICATION = "platform_verification"
    COMMUNITY_VOUCHING = "community_vouching"


class VerificationStatus(StrEnum):
    VERIFIED = "verified"
    PENDING = "pending"
    FAILED = "failed"
    EXPIRED = "expired"


class ConnectionStatus(StrEnum):
    CONNECTED = "connected"
    VERIFIED = "verified"
    EXPIRED = "expired"
    REVOKED = "revoked"


class CredentialStatus(StrEnum):
    PENDING = "pending"
    VERIFIED = "verified"
    DISPUTED = "disputed"
    FAKE = "fake"


class IdentityStatus(StrEnum):
    PENDING = "pending"
    VERIFIED = "verified"
    SUSPENDED = "suspended"
    REVOKED = "revoked"


class RiskTier(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ContentType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"


class SyncFrequency(StrEnum):
    REALTIME = "realtime"
    HOURLY = "hourly"
    DAILY = "daily"
    MANUAL = "manual"
