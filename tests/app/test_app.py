from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from creatorsync.app import (
    SyncRequest,
    SyncServices,
    add_verification,
    adjudicate_conflict,
    build_services,
    ingest_webhook,
    register_creator,
    sync_identity,
)
from creatorsync.config import ScoringConfig, SyncConfig
from creatorsync.domain.errors import (
    AdapterUnavailableError,
    ConcurrentReconciliationError,
    SyncCancelledError,
    ValidationError,
)
from creatorsync.domain.reconciliation import SyncState
from creatorsync.domain.sync import WritePolicy
from tests.helpers.identities import (
    NOW,
    WALLET,
    FakeAdapter,
    make_connection,
    make_identity,
    make_profile,
    make_snapshot,
)

if TYPE_CHECKING:
    from creatorsync.adapters.memory import InMemoryIdentityRepository
    from creatorsync.domain.sync import SessionRegistry

IDENTITY_ID = "uci_0123456789abcdef"


@pytest.fixture
def services() -> SyncServices:
    return build_services(scoring=ScoringConfig(), sync=SyncConfig(fetch_timeout_seconds=0.5))


def test_sync_identity_commits_the_reconciled_identity(
    repository: InMemoryIdentityRepository,
    sessions: SessionRegistry,
    services: SyncServices,
) -> None:
    repository.add(make_identity(connections=[make_connection("tiktok"), make_connection("youtube")]))
    adapters = {
        "tiktok": FakeAdapter(snapshot=make_snapshot("tiktok", follower_count=1000)),
        "youtube": FakeAdapter(snapshot=make_snapshot("youtube", follower_count=1400)),
    }

    response = asyncio.run(
        sync_identity(
            SyncRequest(IDENTITY_ID), sessions=sessions, adapters=adapters, services=services, now=NOW
        )
    )

    stored = repository.get(IDENTITY_ID)
    assert response.success
    assert response.state is SyncState.COMMITTED
    assert response.updated_fields == ("follower_count",)
    assert stored.profile_value("follower_count") == 1233
    assert stored.version == 2
    assert len(sessions) == 0


def test_sync_identity_reports_partial_failures(
    repository: InMemoryIdentityRepository,
    sessions: SessionRegistry,
    services: SyncServices,
) -> None:
    repository.add(make_identity(connections=[make_connection("tiktok"), make_connection("youtube")]))
    adapters = {
        "tiktok": FakeAdapter(snapshot=make_snapshot("tiktok", bio="hello")),
        "youtube": FakeAdapter(error=AdapterUnavailableError("youtube", "HTTP 503")),
    }

    response = asyncio.run(
        sync_identity(
            SyncRequest(IDENTITY_ID), sessions=sessions, adapters=adapters, services=services, now=NOW
        )
    )

    assert response.success
    assert response.synced_platforms == ("tiktok",)
    assert response.failed_platforms == {"youtube": "AdapterUnavailableError"}
    assert repository.get(IDENTITY_ID).profile_value("bio") == "hello"


def test_sync_identity_commits_nothing_when_every_fetch_fails(
    repository: InMemoryIdentityRepository,
    sessions: SessionRegistry,
    services: SyncServices,
) -> None:
    repository.add(make_identity(connections=[make_connection("tiktok")]))
    adapters = {"tiktok": FakeAdapter(error=AdapterUnavailableError("tiktok", "down"))}

    response = asyncio.run(
        sync_identity(
            SyncRequest(IDENTITY_ID), sessions=sessions, adapters=adapters, services=services, now=NOW
        )
    )

    assert not response.success
    assert response.state is SyncState.FAILED
    assert repository.get(IDENTITY_ID).version == 1


def test_cancelled_sync_commits_nothing(
    repository: InMemoryIdentityRepository,
    sessions: SessionRegistry,
    services: SyncServices,
) -> None:
    repository.add(make_identity(connections=[make_connection("tiktok")]))
    adapters = {"tiktok": FakeAdapter(snapshot=make_snapshot("tiktok", bio="x"), delay=0.3)}

    async def scenario() -> None:
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, cancel.set)
        await sync_identity(
            SyncRequest(IDENTITY_ID),
            sessions=sessions,
            adapters=adapters,
            services=services,
            cancel=cancel,
            now=NOW,
        )

    with pytest.raises(SyncCancelledError):
        asyncio.run(scenario())
    assert repository.get(IDENTITY_ID).version == 1


def test_concurrent_sync_can_be_rejected(
    repository: InMemoryIdentityRepository,
    sessions: SessionRegistry,
    services: SyncServices,
) -> None:
    repository.add(make_identity(connections=[make_connection("tiktok")]))
    adapters = {"tiktok": FakeAdapter(snapshot=make_snapshot("tiktok", bio="x"), delay=0.05)}
    request = SyncRequest(IDENTITY_ID, force_sync=True)

    async def scenario() -> list[object]:
        return await asyncio.gather(
            sync_identity(
                request, sessions=sessions, adapters=adapters, services=services, now=NOW
            ),
            sync_identity(
                request,
                sessions=sessions,
                adapters=adapters,
                services=services,
                policy=WritePolicy.REJECT,
                now=NOW,
            ),
            return_exceptions=True,
        )

    first, second = asyncio.run(scenario())

    assert getattr(first, "success", False)
    assert isinstance(second, ConcurrentReconciliationError)


def test_webhook_replay_changes_the_identity_once(
    repository: InMemoryIdentityRepository,
    sessions: SessionRegistry,
    services: SyncServices,
) -> None:
    repository.add(
        make_identity(
            connections=[make_connection("tiktok", profile=make_profile(bio="old"))]
        )
    )
    payload = {
        "eventId": "evt_7",
        "identityId": IDENTITY_ID,
        "platformId": "tiktok",
        "occurredAt": NOW.isoformat(),
        "changes": {"bio": "new"},
    }

    first = asyncio.run(ingest_webhook(payload, sessions=sessions, services=services, now=NOW))
    second = asyncio.run(ingest_webhook(payload, sessions=sessions, services=services, now=NOW))

    stored = repository.get(IDENTITY_ID)
    assert first.updated_fields == ("bio",)
    assert second.duplicate_event
    assert stored.version == 2
    assert stored.profile_value("bio") == "new"
    assert stored.applied_event_ids == {"evt_7"}


def test_add_verification_raises_the_level(
    repository: InMemoryIdentityRepository, sessions: SessionRegistry
) -> None:
    identity = register_creator(
        WALLET,
        repository=repository,
        biometric={"type": "biometric", "confidence": 0.95, "verified_at": NOW.isoformat()},
        now=NOW,
    )

    level = asyncio.run(
        add_verification(
            identity.id,
            {"type": "platform_verification", "confidence": 1.0},
            sessions=sessions,
            now=NOW,
        )
    )

    stored = repository.get(identity.id)
    assert identity.verification_level == 19
    assert level == 44
    assert stored.verification_level == 44
    assert len(stored.verification_methods) == 2


def test_register_creator_rejects_duplicates(repository: InMemoryIdentityRepository) -> None:
    register_creator(WALLET, repository=repository, now=NOW)

    with pytest.raises(ValidationError, match="already exists"):
        register_creator(WALLET, repository=repository, now=NOW)


def test_adjudication_settles_a_pending_field(
    repository: InMemoryIdentityRepository, sessions: SessionRegistry
) -> None:
    identity = make_identity()
    identity.fields_pending_review.add("bio")
    repository.add(identity)

    settled = asyncio.run(
        adjudicate_conflict(IDENTITY_ID, "bio", "Painter and sculptor.", sessions=sessions, now=NOW)
    )

    stored = repository.get(IDENTITY_ID)
    assert settled.version == 2
    assert stored.profile["bio"].source == "manual"
    assert stored.profile_value("bio") == "Painter and sculptor."
    assert stored.fields_pending_review == set()
    with pytest.raises(ValidationError):
        asyncio.run(adjudicate_conflict(IDENTITY_ID, "shoe_size", 44, sessions=sessions))
