"""Translate between identity documents and the domain aggregate."""

from __future__ import annotations

from typing import TYPE_CHECKING

from creatorsync.domain.model import (
    AppliedEvent,
    AuthenticityProof,
    BlockchainProof,
    ContentCredential,
    DeepfakeAnalysis,
    FieldValue,
    Identity,
    NormalizedMetrics,
    PlatformConnection,
    PlatformProfile,
    SocialProofData,
    SyncSettings,
    VerificationMethod,
)

from .schema import (
    AppliedEventModel,
    AuthenticityProofModel,
    BlockchainProofModel,
    ContentCredentialModel,
    DeepfakeModel,
    FieldValueModel,
    IdentityDocument,
    MetricsModel,
    PlatformConnectionModel,
    ProfileModel,
    SocialProofModel,
    SyncSettingsModel,
    VerificationMethodModel,
)

if TYPE_CHECKING:
    from datetime import datetime

    from creatorsync.domain.scoring import EvidenceScorer


def identity_from_document(
    document: IdentityDocument, *, scorer: EvidenceScorer, as_of: datetime
) -> Identity:
    """Build the aggregate and recompute its derived scores as of ``as_of``."""

    identity = Identity(
        id=document.id,
        wallet_address=document.wallet_address,
        status=document.status,
        version=document.version,
        created_at=document.created_at,
        updated_at=document.updated_at,
        last_sync_at=document.last_sync_at,
        verification_methods=[_method(model) for model in document.verification_methods],
        connected_platforms={
            model.platform_id: _connection(model) for model in document.connected_platforms
        },
        content_credentials=[_credential(model) for model in document.content_credentials],
        profile={
            name: FieldValue(value=model.value, source=model.source, observed_at=model.observed_at)
            for name, model in document.profile.items()
        },
        applied_events={
            model.event_id: AppliedEvent(
                platform_id=model.platform_id, occurred_at=model.occurred_at
            )
            for model in document.applied_events
        },
        fields_pending_review=set(document.fields_pending_review),
    )
    identity.refresh_scores(scorer, as_of=as_of)
    return identity


def identity_to_document(identity: Identity) -> IdentityDocument:
    return IdentityDocument(
        id=identity.id,
        wallet_address=identity.wallet_address,
        status=identity.status,
        version=identity.version,
        created_at=identity.created_at,
        updated_at=identity.updated_at,
        last_sync_at=identity.last_sync_at,
        verification_methods=[
            VerificationMethodModel(
                type=method.type,
                status=method.status,
                confidence=method.confidence,
                verified_at=method.verified_at,
                expires_at=method.expires_at,
                metadata=dict(method.metadata),
            )
            for method in identity.verification_methods
        ],
        connected_platforms=[
            _connection_model(connection)
            for _, connection in sorted(identity.connected_platforms.items())
        ],
        content_credentials=[
            _credential_model(credential) for credential in identity.content_credentials
        ],
        profile={
            name: FieldValueModel(
                value=current.value, source=current.source, observed_at=current.observed_at
            )
            for name, current in sorted(identity.profile.items())
        },
        applied_events=[
            AppliedEventModel(
                event_id=event_id, platform_id=event.platform_id, occurred_at=event.occurred_at
            )
            for event_id, event in sorted(identity.applied_events.items())
        ],
        fields_pending_review=sorted(identity.fields_pending_review),
        verification_level=identity.verification_level,
        authenticity_score=identity.authenticity_score,
        risk_tier=identity.risk_tier,
    )


def _method(model: VerificationMethodModel) -> VerificationMethod:
    return VerificationMethod(
        type=model.type,
        status=model.status,
        confidence=model.confidence,
        verified_at=model.verified_at,
        expires_at=model.expires_at,
        metadata=dict(model.metadata),
    )


def _connection(model: PlatformConnectionModel) -> PlatformConnection:
    settings = model.sync_settings
    return PlatformConnection(
        platform_id=model.platform_id,
        username=model.username,
        user_id=model.user_id,
        display_name=model.display_name,
        connection_status=model.connection_status,
        connected_at=model.connected_at,
        last_sync_at=model.last_sync_at,
        metrics=NormalizedMetrics(**model.metrics.model_dump()) if model.metrics else None,
        profile=PlatformProfile(**model.profile.model_dump()) if model.profile else None,
        sync_settings=SyncSettings(
            auto_sync=settings.auto_sync,
            sync_frequency=settings.sync_frequency,
            sync_fields=frozenset(settings.sync_fields),
        ),
    )


def _connection_model(connection: PlatformConnection) -> PlatformConnectionModel:
    metrics = connection.metrics
    profile = connection.profile
    settings = connection.sync_settings
    return PlatformConnectionModel(
        platform_id=connection.platform_id,
        username=connection.username,
        user_id=connection.user_id,
        display_name=connection.display_name,
        connection_status=connection.connection_status,
        connected_at=connection.connected_at,
        last_sync_at=connection.last_sync_at,
        metrics=None
        if metrics is None
        else MetricsModel(
            total_reach=metrics.total_reach,
            engagement_rate=metrics.engagement_rate,
            average_views=metrics.average_views,
            average_likes=metrics.average_likes,
            average_comments=metrics.average_comments,
            average_shares=metrics.average_shares,
            growth_rate=metrics.growth_rate,
        ),
        profile=None
        if profile is None
        else ProfileModel(
            display_name=profile.display_name,
            bio=profile.bio,
            avatar_url=profile.avatar_url,
            follower_count=profile.follower_count,
            following_count=profile.following_count,
            content_count=profile.content_count,
            engagement_rate=profile.engagement_rate,
            platform_verified=profile.platform_verified,
        ),
        sync_settings=SyncSettingsModel(
            auto_sync=settings.auto_sync,
            sync_frequency=settings.sync_frequency,
            sync_fields=sorted(settings.sync_fields),
        ),
    )


def _credential(model: ContentCredentialModel) -> ContentCredential:
    proof = model.authenticity_proof
    return ContentCredential(
        id=model.id,
        content_hash=model.content_hash,
        content_type=model.content_type,
        original_platform=model.original_platform,
        created_at=model.created_at,
        _verification_status=model.verification_status,
        authenticity_proof=AuthenticityProof(
            biometric_match=proof.biometric_match,
            metadata_consistency=proof.metadata_consistency,
            deepfake=None
            if proof.deepfake is None
            else DeepfakeAnalysis(
                is_deepfake=proof.deepfake.is_deepfake,
                confidence=proof.deepfake.confidence,
                detection_methods=tuple(proof.deepfake.detection_methods),
                model_version=proof.deepfake.model_version,
                processed_at=proof.deepfake.processed_at,
            ),
            social_proof=None
            if proof.social_proof is None
            else SocialProofData(**proof.social_proof.model_dump()),
            blockchain_proof=None
            if proof.blockchain_proof is None
            else BlockchainProof(**proof.blockchain_proof.model_dump()),
        ),
    )


def _credential_model(credential: ContentCredential) -> ContentCredentialModel:
    proof = credential.authenticity_proof
    deepfake = proof.deepfake
    social = proof.social_proof
    chain = proof.blockchain_proof
    return ContentCredentialModel(
        id=credential.id,
        content_hash=credential.content_hash,
        content_type=credential.content_type,
        original_platform=credential.original_platform,
        created_at=credential.created_at,
        verification_status=credential.verification_status,
        authenticity_proof=AuthenticityProofModel(
            biometric_match=proof.biometric_match,
            metadata_consistency=proof.metadata_consistency,
            deepfake=None
            if deepfake is None
            else DeepfakeModel(
                is_deepfake=deepfake.is_deepfake,
                confidence=deepfake.confidence,
                detection_methods=list(deepfake.detection_methods),
                model_version=deepfake.model_version,
                processed_at=deepfake.processed_at,
            ),
            social_proof=None
            if social is None
            else SocialProofModel(
                platform_verification=social.platform_verification,
                community_vouching=social.community_vouching,
                historical_consistency=social.historical_consistency,
                cross_platform_consistency=social.cross_platform_consistency,
            ),
            blockchain_proof=None
            if chain is None
            else BlockchainProofModel(
                transaction_hash=chain.transaction_hash,
                timestamp=chain.timestamp,
                block_number=chain.block_number,
                confirmations=chain.confirmations,
            ),
        ),
    )
