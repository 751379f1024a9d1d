from __future__ import annotations

from datetime import timedelta

import pytest

from creatorsync.domain.errors import AdapterTimeoutError, IdentityRevokedError
from creatorsync.domain.model import (
    ConnectionStatus,
    ContentCredential,
    IdentityStatus,
    VerificationType,
)
from creatorsync.domain.reconciliation import (
    RecommendedAction,
    ReconciliationEngine,
    SyncResponse,
    SyncState,
)
from creatorsync.domain.sync import FetchFailure, SyncResult
from tests.helpers.identities import (
    NOW,
    make_connection,
    make_identity,
    make_method,
    make_profile,
    make_proof,
    make_snapshot,
)


def _failure(platform_id: str) -> FetchFailure:
    return FetchFailure.from_exception(platform_id, AdapterTimeoutError(platform_id, "slow"))


def test_empty_sync_leaves_identity_unchanged(engine: ReconciliationEngine) -> None:
    identity = make_identity(connections=[make_connection("tiktok")])

    updated, report = engine.run(identity, SyncResult(), as_of=NOW)

    assert report.state is SyncState.COMMITTED
    assert report.updated_fields == ()
    assert updated.version == identity.version
    assert updated.updated_at == identity.updated_at


def test_reapplying_the_same_snapshot_is_idempotent(engine: ReconciliationEngine) -> None:
    identity = make_identity(connections=[make_connection("tiktok")])
    result = SyncResult(snapshots=(make_snapshot("tiktok", follower_count=1000, bio="hi"),))

    first, first_report = engine.run(identity, result, as_of=NOW)
    second, second_report = engine.run(first, result, as_of=NOW + timedelta(minutes=5))

    assert set(first_report.updated_fields) == {"follower_count", "bio"}
    assert first.version == identity.version + 1
    assert second_report.updated_fields == ()
    assert second.version == first.version
    assert second.profile == first.profile


def test_follower_variance_is_auto_resolved(engine: ReconciliationEngine) -> None:
    identity = make_identity(connections=[make_connection("tiktok"), make_connection("youtube")])
    result = SyncResult(
        snapshots=(
            make_snapshot("tiktok", follower_count=1000),
            make_snapshot("youtube", follower_count=1400),
        )
    )

    updated, report = engine.run(identity, result, as_of=NOW)

    assert report.state is SyncState.COMMITTED
    assert updated.profile_value("follower_count") == 1233
    assert [c.kind for c in report.conflicts] == ["follower_count_variance"]
    assert report.conflicts[0].recommended_action is RecommendedAction.AUTO_APPLIED
    assert report.synced_platforms == ("tiktok", "youtube")


def test_bio_conflict_is_reported_but_not_applied(engine: ReconciliationEngine) -> None:
    identity = make_identity(
        connections=[
            make_connection("instagram", profile=make_profile(bio="Painter.")),
            make_connection("tiktok", profile=make_profile(bio="Painter!")),
        ]
    )
    result = SyncResult(
        snapshots=(
            make_snapshot("instagram", bio="Painter and sculptor."),
            make_snapshot("tiktok", bio="Daily art videos"),
        )
    )

    updated, report = engine.run(identity, result, as_of=NOW)

    assert report.state is SyncState.PARTIALLY_COMMITTED
    assert report.success
    [conflict] = report.manual_conflicts
    assert conflict.kind == "bio_conflict"
    assert conflict.resolution.value == "Painter and sculptor."
    assert updated.profile_value("bio") is None
    assert "bio" in updated.fields_pending_review
    assert "bio" not in report.updated_fields


def test_failed_platform_does_not_block_the_others(engine: ReconciliationEngine) -> None:
    identity = make_identity(connections=[make_connection("tiktok"), make_connection("youtube")])
    result = SyncResult(
        snapshots=(make_snapshot("tiktok", display_name="Jay"),),
        failed={"youtube": _failure("youtube")},
    )

    updated, report = engine.run(identity, result, as_of=NOW)

    assert report.state is SyncState.COMMITTED
    assert report.synced_platforms == ("tiktok",)
    assert report.failed_platforms["youtube"].error_class == "AdapterTimeoutError"
    assert updated.profile_value("display_name") == "Jay"


def test_every_platform_failing_fails_the_cycle(engine: ReconciliationEngine) -> None:
    identity = make_identity(connections=[make_connection("tiktok")])
    result = SyncResult(failed={"tiktok": _failure("tiktok")})

    updated, report = engine.run(identity, result, as_of=NOW)

    assert report.state is SyncState.FAILED
    assert not report.success
    assert updated is identity


def test_stale_snapshots_are_discarded(engine: ReconciliationEngine) -> None:
    identity = make_identity(
        connections=[
            make_connection(
                "tiktok", profile=make_profile(follower_count=900), last_sync_at=NOW
            )
        ]
    )
    result = SyncResult(
        snapshots=(make_snapshot("tiktok", fetched_at=NOW - timedelta(hours=1), follower_count=5),)
    )

    updated, report = engine.run(identity, result, as_of=NOW)

    assert report.synced_platforms == ()
    assert len(report.errors) == 1
    assert "older than last sync" in report.errors[0]
    assert updated.connected_platforms["tiktok"].profile == make_profile(follower_count=900)


def test_input_identity_is_never_mutated(engine: ReconciliationEngine) -> None:
    identity = make_identity(connections=[make_connection("tiktok")])
    result = SyncResult(snapshots=(make_snapshot("tiktok", follower_count=42, bio="hey"),))

    updated, _ = engine.run(identity, result, as_of=NOW)

    assert updated is not identity
    assert identity.profile == {}
    assert identity.connected_platforms["tiktok"].profile is None
    assert identity.version == 1


def test_snapshot_evidence_is_merged_once(engine: ReconciliationEngine) -> None:
    identity = make_identity(connections=[make_connection("youtube")])
    method = make_method(VerificationType.PLATFORM_VERIFICATION, confidence=1.0)
    credential = ContentCredential(
        content_hash="d" * 64, authenticity_proof=make_proof(), created_at=NOW
    )
    result = SyncResult(
        snapshots=(
            make_snapshot(
                "youtube",
                verification_methods=[method],
                content_credentials=[credential],
                platform_verified=True,
                bio="x",
            ),
        )
    )

    first, report = engine.run(identity, result, as_of=NOW)
    second, again = engine.run(first, result, as_of=NOW)

    assert report.new_verification_methods == (method,)
    assert [added.content_hash for added in report.new_content] == ["d" * 64]
    assert report.new_content[0] is first.content_credentials[0]
    assert again.new_verification_methods == ()
    assert again.new_content == ()
    new_content = SyncResponse.from_report(report).to_dict()["new_content"]
    assert new_content == [
        {
            "id": credential.id,
            "content_hash": "d" * 64,
            "content_type": "image",
            "original_platform": None,
            "created_at": NOW.isoformat(),
            "verification_status": "pending",
        }
    ]
    assert first.verification_level == 25
    assert len(second.verification_methods) == 1
    assert len(second.content_credentials) == 1
    assert first.connected_platforms["youtube"].connection_status is ConnectionStatus.VERIFIED


def test_revoked_identity_cannot_be_reconciled(engine: ReconciliationEngine) -> None:
    identity = make_identity()
    identity.status = IdentityStatus.REVOKED

    with pytest.raises(IdentityRevokedError):
        engine.run(identity, SyncResult(), as_of=NOW)


def test_snapshot_confidence_is_clamped_with_a_warning(
    engine: ReconciliationEngine, caplog: pytest.LogCaptureFixture
) -> None:
    identity = make_identity(connections=[make_connection("youtube")])
    method = make_method(VerificationType.PLATFORM_VERIFICATION, confidence=1.7)
    result = SyncResult(snapshots=(make_snapshot("youtube", verification_methods=[method]),))

    updated, report = engine.run(identity, result, as_of=NOW)

    assert updated.verification_methods[0].confidence == 1.0
    assert report.new_verification_methods[0].confidence == 1.0
    assert updated.verification_level == 25
    assert "Clamped" in caplog.text
