"""Pydantic models for the identity JSON document."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from creatorsync.domain.model import (
    ConnectionStatus,
    ContentType,
    CredentialStatus,
    IdentityStatus,
    RiskTier,
    SyncFrequency,
    VerificationStatus,
    VerificationType,
)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
Unit = Annotated[float, Field(ge=0.0, le=1.0)]


class DocumentModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class VerificationMethodModel(DocumentModel):
    type: VerificationType
    status: VerificationStatus
    confidence: Unit
    verified_at: UtcDatetime
    expires_at: UtcDatetime | None = None
    metadata: dict[str, object] = Field(default_factory=dict)


class DeepfakeModel(DocumentModel):
    is_deepfake: bool
    confidence: Unit
    detection_methods: list[str] = Field(default_factory=list)
    model_version: str | None = None
    processed_at: UtcDatetime | None = None


class SocialProofModel(DocumentModel):
    platform_verification: bool = False
    community_vouching: int = Field(default=0, ge=0)
    historical_consistency: Unit = 0.0
    cross_platform_consistency: Unit = 0.0


class BlockchainProofModel(DocumentModel):
    transaction_hash: str
    timestamp: UtcDatetime
    block_number: int | None = None
    confirmations: int = Field(default=0, ge=0)


class AuthenticityProofModel(DocumentModel):
    biometric_match: Unit = 0.0
    metadata_consistency: Unit = 0.0
    deepfake: DeepfakeModel | None = None
    social_proof: SocialProofModel | None = None
    blockchain_proof: BlockchainProofModel | None = None


class ContentCredentialModel(DocumentModel):
    id: str
    content_hash: str = Field(pattern=r"^[0-9a-f]{64}$")
    content_type: ContentType = ContentType.IMAGE
    original_platform: str | None = None
    created_at: UtcDatetime
    verification_status: CredentialStatus = CredentialStatus.PENDING
    authenticity_proof: AuthenticityProofModel


class MetricsModel(DocumentModel):
    total_reach: int = 0
    engagement_rate: float = 0.0
    average_views: float = 0.0
    average_likes: float = 0.0
    average_comments: float = 0.0
    average_shares: float = 0.0
    growth_rate: float = 0.0


class ProfileModel(DocumentModel):
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    follower_count: int | None = None
    following_count: int | None = None
    content_count: int | None = None
    engagement_rate: float | None = None
    platform_verified: bool = False


class SyncSettingsModel(DocumentModel):
    auto_sync: bool = True
    sync_frequency: SyncFrequency = SyncFrequency.REALTIME
    sync_fields: list[str] = Field(default_factory=list)


class PlatformConnectionModel(DocumentModel):
    platform_id: str
    username: str
    user_id: str | None = None
    display_name: str | None = None
    connection_status: ConnectionStatus = ConnectionStatus.CONNECTED
    connected_at: UtcDatetime
    last_sync_at: UtcDatetime | None = None
    metrics: MetricsModel | None = None
    profile: ProfileModel | None = None
    sync_settings: SyncSettingsModel = Field(default_factory=SyncSettingsModel)


class FieldValueModel(DocumentModel):
    value: int | float | str
    source: str
    observed_at: UtcDatetime


class AppliedEventModel(DocumentModel):
    event_id: str = Field(min_length=1)
    platform_id: str
    occurred_at: UtcDatetime


class IdentityDocument(DocumentModel):
    id: str
    wallet_address: str
    status: IdentityStatus = IdentityStatus.PENDING
    version: int = Field(default=1, ge=1)
    created_at: UtcDatetime
    updated_at: UtcDatetime | None = None
    last_sync_at: UtcDatetime | None = None
    verification_methods: list[VerificationMethodModel] = Field(default_factory=list)
    connected_platforms: list[PlatformConnectionModel] = Field(default_factory=list)
    content_credentials: list[ContentCredentialModel] = Field(default_factory=list)
    profile: dict[str, FieldValueModel] = Field(default_factory=dict)
    applied_events: list[AppliedEventModel] = Field(default_factory=list)
    fields_pending_review: list[str] = Field(default_factory=list)
    # derived; written for readers, recomputed on load
    verification_level: int | None = None
    authenticity_score: int | None = None
    risk_tier: RiskTier | None = None
