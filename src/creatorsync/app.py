"""Application orchestration entry points."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.adapters.webhook import parse_webhook_payload, to_update_event
from creatorsync.config import get_scoring_config, get_sync_config
from creatorsync.domain.errors import SyncCancelledError, ValidationError
from creatorsync.domain.model import FieldValue
from creatorsync.domain.reconciliation import (
    ConflictDetector,
    ConflictResolver,
    ReconciliationEngine,
    SyncCycle,
    SyncResponse,
    SyncState,
    tracked_field,
)
from creatorsync.domain.scoring import EvidenceScorer
from creatorsync.domain.sync import SyncCoordinator, WritePolicy, apply_webhook_event
from creatorsync.domain.verification import (
    add_verification_method,
    parse_verification_method,
    register_identity,
)

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping

    from creatorsync.config import ScoringConfig, SyncConfig
    from creatorsync.domain.model import FieldScalar, Identity
    from creatorsync.domain.ports import IdentityRepository, PlatformAdapters
    from creatorsync.domain.reconciliation import ResolutionStrategy, SyncReport
    from creatorsync.domain.sync import SessionRegistry

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncRequest:
    identity_id: str
    platforms: tuple[str, ...] | None = None
    force_sync: bool = False


@dataclass(slots=True)
class SyncServices:
    """Wired collaborators for one process; build once with ``build_services``."""

    scorer: EvidenceScorer = field(default_factory=EvidenceScorer)
    coordinator: SyncCoordinator = field(default_factory=SyncCoordinator)
    engine: ReconciliationEngine = field(default_factory=ReconciliationEngine)


def build_services(
    *,
    scoring: ScoringConfig | None = None,
    sync: SyncConfig | None = None,
    strategy_overrides: Mapping[str, ResolutionStrategy] | None = None,
) -> SyncServices:
    """Wire scorer, coordinator and engine from config (environment by default)."""

    sync_config = sync or get_sync_config()
    scorer = EvidenceScorer(scoring or get_scoring_config())
    return SyncServices(
        scorer=scorer,
        coordinator=SyncCoordinator(sync_config),
        engine=ReconciliationEngine(
            scorer=scorer,
            detector=ConflictDetector(sync_config),
            resolver=ConflictResolver(sync_config, overrides=dict(strategy_overrides or {})),
        ),
    )


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


async def sync_identity(  # noqa: PLR0913
    request: SyncRequest,
    *,
    sessions: SessionRegistry,
    adapters: PlatformAdapters,
    services: SyncServices | None = None,
    cancel: asyncio.Event | None = None,
    policy: WritePolicy = WritePolicy.QUEUE,
    now: datetime | None = None,
) -> SyncResponse:
    """Run one full sync cycle for an identity under its single-writer session."""

    services = services or build_services()
    log.info(
        "Starting sync for %s: platforms=%s, force=%s",
        request.identity_id,
        ",".join(request.platforms) if request.platforms else "all",
        request.force_sync,
    )
    async with sessions.open(request.identity_id) as session, session.writer(policy) as identity:
        identity.ensure_mutable()
        cycle = SyncCycle(identity.id)
        cycle.advance(SyncState.FETCHING)
        started_at = now or _utcnow()
        try:
            result = await services.coordinator.sync(
                identity,
                adapters,
                platforms=request.platforms,
                force=request.force_sync,
                cancel=cancel,
                now=started_at,
            )
        except SyncCancelledError:
            cycle.advance(SyncState.FAILED)
            log.warning("Sync for %s cancelled; nothing committed", identity.id)
            raise

        cycle.advance(SyncState.RECONCILING)
        updated, report = services.engine.run(identity, result, as_of=now or _utcnow())
        cycle.advance(report.state)
        if report.success:
            session.commit(updated, report)

    log.info(
        "Finished sync for %s: state=%s, synced=%s, failed=%s, updated=%s, conflicts=%d",
        request.identity_id,
        report.state,
        ",".join(report.synced_platforms) or "-",
        ",".join(report.failed_platforms) or "-",
        ",".join(report.updated_fields) or "-",
        len(report.conflicts),
    )
    return SyncResponse.from_report(report)


async def ingest_webhook(
    payload: Mapping[str, object] | str | bytes,
    *,
    sessions: SessionRegistry,
    services: SyncServices | None = None,
    now: datetime | None = None,
) -> SyncReport:
    """Validate and apply one platform webhook; replays are acknowledged without change."""

    services = services or build_services()
    parsed = parse_webhook_payload(payload)
    event = to_update_event(parsed)
    async with sessions.open(parsed.identity_id) as session, session.writer() as identity:
        updated, report = apply_webhook_event(
            identity, event, engine=services.engine, now=now or _utcnow()
        )
        if report.success and updated is not identity:
            session.commit(updated, report)
    return report


async def add_verification(
    identity_id: str,
    payload: Mapping[str, object],
    *,
    sessions: SessionRegistry,
    scorer: EvidenceScorer | None = None,
    now: datetime | None = None,
) -> int:
    """Validate and append one verification method; returns the new verification level."""

    scorer = scorer or EvidenceScorer(get_scoring_config())
    as_of = now or _utcnow()
    method = parse_verification_method(payload, now=as_of)
    async with sessions.open(identity_id) as session, session.writer() as identity:
        working = copy.deepcopy(identity)
        level = add_verification_method(working, method, scorer=scorer, as_of=as_of)
        session.commit(working)
    log.info("Added %s verification to %s (level=%s)", method.type, identity_id, level)
    return level


def register_creator(
    wallet_address: str,
    *,
    repository: IdentityRepository,
    biometric: Mapping[str, object] | None = None,
    scorer: EvidenceScorer | None = None,
    now: datetime | None = None,
) -> Identity:
    scorer = scorer or EvidenceScorer(get_scoring_config())
    as_of = now or _utcnow()
    method = parse_verification_method(biometric, now=as_of) if biometric is not None else None
    identity = register_identity(wallet_address, scorer=scorer, biometric=method, now=as_of)
    repository.add(identity)
    return identity


async def adjudicate_conflict(
    identity_id: str,
    field_name: str,
    value: FieldScalar,
    *,
    sessions: SessionRegistry,
    now: datetime | None = None,
) -> Identity:
    """Settle a manual-review conflict with a human-chosen value."""

    try:
        tracked_field(field_name)
    except KeyError as exc:
        raise ValidationError(str(exc)) from exc
    as_of = now or _utcnow()
    async with sessions.open(identity_id) as session, session.writer() as identity:
        identity.ensure_mutable()
        working = copy.deepcopy(identity)
        working.profile[field_name] = FieldValue(value=value, source="manual", observed_at=as_of)
        working.fields_pending_review.discard(field_name)
        working.touch(as_of)
        session.commit(working)
    log.info("Adjudicated %s on %s", field_name, identity_id)
    return working
