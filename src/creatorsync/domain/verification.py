"""Explicit evidence mutations on an identity.

Everything outside sync reconciliation that changes an identity goes through
here: registration, verification-method additions, content credentials,
oracle-driven credential status changes, platform linking and revocation.
Every mutator validates first and mutates second, then recomputes scores.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, cast

from creatorsync.domain.errors import (
    DuplicateContentCredentialError,
    UnknownVerificationTypeError,
    ValidationError,
)
from creatorsync.domain.model import (
    ConnectionStatus,
    ContentCredential,
    ContentType,
    CredentialStatus,
    Identity,
    IdentityStatus,
    VerificationMethod,
    VerificationStatus,
    VerificationType,
)
from creatorsync.domain.scoring import clamp_confidence

if TYPE_CHECKING:
    from creatorsync.domain.model import AuthenticityProof, PlatformConnection
    from creatorsync.domain.scoring import EvidenceScorer

log = getLogger(__name__)


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def generate_identity_id(wallet_address: str, *, created_at: datetime) -> str:
    digest = hashlib.sha256(f"{wallet_address}:{created_at.isoformat()}".encode()).hexdigest()
    return f"uci_{digest[:16]}"


def _parse_datetime(value: object, *, name: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError as exc:
            raise ValidationError(f"Invalid ISO timestamp for {name}: {value!r}") from exc
    else:
        raise ValidationError(f"{name} must be an ISO timestamp")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_verification_method(
    payload: Mapping[str, object], *, now: datetime | None = None
) -> VerificationMethod:
    """Validate an inbound verification addition.

    ``type`` must belong to the closed enumeration; ``confidence`` must parse as
    a number and is clamped into [0, 1] with a data-quality warning.
    """

    raw_type = payload.get("type")
    try:
        method_type = VerificationType(str(raw_type))
    except ValueError as exc:
        raise UnknownVerificationTypeError(f"Unknown verification type: {raw_type!r}") from exc

    raw_status = payload.get("status", VerificationStatus.VERIFIED)
    try:
        status = VerificationStatus(str(raw_status))
    except ValueError as exc:
        raise ValidationError(f"Unknown verification status: {raw_status!r}") from exc

    confidence, clamped = clamp_confidence(payload.get("confidence"))
    if clamped:
        log.warning(
            "Clamped %s confidence %r into [0, 1]", method_type, payload.get("confidence")
        )

    verified_at = _parse_datetime(payload.get("verified_at"), name="verified_at")
    expires_at = _parse_datetime(payload.get("expires_at"), name="expires_at")
    metadata = payload.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise ValidationError("metadata must be an object")

    return VerificationMethod(
        type=method_type,
        status=status,
        confidence=confidence,
        verified_at=verified_at or now or datetime.now(tz=UTC),
        expires_at=expires_at,
        metadata=dict(cast(Mapping[str, object], metadata)),
    )


def register_identity(
    wallet_address: str,
    *,
    scorer: EvidenceScorer,
    biometric: VerificationMethod | None = None,
    now: datetime,
) -> Identity:
    """Create a new identity, optionally seeded with a biometric verification."""

    if not wallet_address.strip():
        raise ValidationError("wallet_address must not be blank")
    methods: list[VerificationMethod] = []
    if biometric is not None:
        if biometric.type is not VerificationType.BIOMETRIC:
            raise ValidationError("Initial verification must be biometric")
        minimum = scorer.config.registration_biometric_minimum
        if biometric.confidence < minimum:
            raise ValidationError(
                f"Biometric confidence {biometric.confidence:.2f} below required {minimum:.2f}"
            )
        methods.append(biometric)

    identity = Identity(
        id=generate_identity_id(wallet_address, created_at=now),
        wallet_address=wallet_address,
        created_at=now,
        updated_at=now,
        verification_methods=methods,
    )
    identity.refresh_scores(scorer, as_of=now)
    log.info("Registered identity %s (level=%s)", identity.id, identity.verification_level)
    return identity


def add_verification_method(
    identity: Identity,
    method: VerificationMethod,
    *,
    scorer: EvidenceScorer,
    as_of: datetime,
) -> int:
    """Append ``method`` and return the recomputed verification level."""

    identity.ensure_mutable()
    confidence, clamped = clamp_confidence(method.confidence)
    if clamped:
        log.warning("Clamped %s confidence %r into [0, 1]", method.type, method.confidence)
        method = VerificationMethod(
            type=method.type,
            status=method.status,
            confidence=confidence,
            verified_at=method.verified_at,
            expires_at=method.expires_at,
            metadata=method.metadata,
        )
    identity.verification_methods.append(method)
    identity.refresh_scores(scorer, as_of=as_of)
    if identity.status is IdentityStatus.PENDING and identity.verification_level > 0:
        identity.status = IdentityStatus.VERIFIED
    identity.touch(as_of)
    return identity.verification_level


def add_content_credential(
    identity: Identity,
    *,
    content: bytes,
    proof: AuthenticityProof,
    scorer: EvidenceScorer,
    as_of: datetime,
    content_type: ContentType = ContentType.IMAGE,
    original_platform: str | None = None,
) -> ContentCredential:
    """Register a content credential, auto-verifying it when the proof scores high."""

    identity.ensure_mutable()
    digest = content_hash(content)
    if identity.find_credential(digest) is not None:
        raise DuplicateContentCredentialError(f"Content {digest[:12]} already registered")

    assessment = scorer.assess_proof(proof, as_of=as_of)
    status = (
        CredentialStatus.VERIFIED
        if assessment.score > scorer.config.credential_auto_verify_above
        else CredentialStatus.PENDING
    )
    credential = ContentCredential(
        content_hash=digest,
        authenticity_proof=proof,
        content_type=content_type,
        original_platform=original_platform,
        created_at=as_of,
        _verification_status=status,
    )
    identity.content_credentials.append(credential)
    identity.refresh_scores(scorer, as_of=as_of)
    identity.touch(as_of)
    return credential


def update_credential_status(
    identity: Identity,
    digest: str,
    status: CredentialStatus,
    *,
    scorer: EvidenceScorer,
    as_of: datetime,
) -> ContentCredential:
    """Apply an oracle verdict to an existing credential."""

    identity.ensure_mutable()
    credential = identity.find_credential(digest)
    if credential is None:
        raise ValidationError(f"No credential for content {digest[:12]}")
    if credential.transition_to(status):
        identity.refresh_scores(scorer, as_of=as_of)
        identity.touch(as_of)
    return credential


def link_platform(identity: Identity, connection: PlatformConnection, *, now: datetime) -> None:
    """Attach a platform connection; a revoked link for the same platform may be replaced."""

    identity.ensure_mutable()
    existing = identity.connection(connection.platform_id)
    if existing is not None and existing.connection_status is not ConnectionStatus.REVOKED:
        raise ValidationError(f"Platform {connection.platform_id!r} is already connected")
    identity.connected_platforms[connection.platform_id] = connection
    identity.touch(now)


def revoke_connection(identity: Identity, platform_id: str, *, now: datetime) -> None:
    connection = identity.connection(platform_id)
    if connection is None:
        raise ValidationError(f"Platform {platform_id!r} is not connected")
    if connection.connection_status is ConnectionStatus.REVOKED:
        return
    connection.connection_status = ConnectionStatus.REVOKED
    identity.touch(now)


def revoke_identity(identity: Identity, *, now: datetime) -> None:
    """Terminal status change; identities are never deleted."""

    if identity.is_revoked:
        return
    identity.status = IdentityStatus.REVOKED
    for connection in identity.connected_platforms.values():
        connection.connection_status = ConnectionStatus.REVOKED
    identity.touch(now)
