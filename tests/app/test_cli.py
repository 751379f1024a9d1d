from __future__ import annotations

import json
from functools import partial
from typing import TYPE_CHECKING

import httpx
import pytest

from creatorsync.adapters.http_resilience import ResilientClient
from creatorsync.adapters.jsonfile import dump_identity, load_identity
from creatorsync.adapters.platforms import build_platform_adapters
from creatorsync.domain.model import ConnectionStatus
from creatorsync.domain.reconciliation import SyncResponse, SyncState
from creatorsync.domain.scoring import EvidenceScorer
from creatorsync.ui import cli
from tests.helpers.identities import make_connection, make_identity, make_method

if TYPE_CHECKING:
    from pathlib import Path

    from creatorsync.app import SyncRequest
    from creatorsync.config import ResilienceConfig


@pytest.fixture
def identity_file(tmp_path: Path) -> Path:
    path = tmp_path / "identity.json"
    dump_identity(
        make_identity(methods=[make_method(confidence=0.95)], connections=[make_connection("tiktok")]),
        path,
    )
    return path


def test_score_prints_the_derived_scores(
    identity_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.main(["score", str(identity_file)])

    output = json.loads(capsys.readouterr().out)
    assert output["identity_id"] == "uci_0123456789abcdef"
    assert output["risk_tier"] == "high"
    assert output["authenticity_score"] == 0


def test_verify_updates_the_document(identity_file: Path) -> None:
    cli.main(["verify", str(identity_file), "--type", "government_id", "--confidence", "2"])

    identity = load_identity(identity_file, scorer=EvidenceScorer())
    assert len(identity.verification_methods) == 2
    assert identity.version == 2


def test_missing_identity_file_exits_with_validation_code(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["score", str(tmp_path / "missing.json")])

    assert excinfo.value.code == 2


def test_rejected_input_exits_with_validation_code(identity_file: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["verify", str(identity_file), "--type", "biometric", "--confidence", "high"])

    assert excinfo.value.code == 2


def test_sync_passes_the_request_through(
    identity_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}

    async def fake_sync(request: SyncRequest, **kwargs: object) -> SyncResponse:
        captured["request"] = request
        captured["adapters"] = kwargs["adapters"]
        return SyncResponse(
            success=False,
            state=SyncState.FAILED,
            synced_platforms=(),
            failed_platforms={"tiktok": "AdapterUnavailableError"},
            conflicts=(),
            updated_fields=(),
        )

    def fake_build(platforms: list[str]) -> dict[str, object]:
        captured["built"] = platforms
        return {}

    monkeypatch.setattr(cli, "sync_identity", fake_sync)
    monkeypatch.setattr(cli, "build_platform_adapters", fake_build)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync", str(identity_file), "--platform", "tiktok", "--force"])

    assert excinfo.value.code == 1
    request = captured["request"]
    assert request.platforms == ("tiktok",)  # type: ignore[attr-defined]
    assert request.force_sync is True  # type: ignore[attr-defined]
    assert captured["built"] == ["tiktok"]
    assert captured["adapters"] == {}
    assert json.loads(capsys.readouterr().out)["state"] == "failed"


def test_sync_isolates_an_unconfigured_platform(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    path = tmp_path / "identity.json"
    dump_identity(
        make_identity(
            connections=[
                make_connection("tiktok"),
                make_connection("instagram"),
                make_connection("youtube", status=ConnectionStatus.REVOKED),
            ]
        ),
        path,
    )
    monkeypatch.setenv("CREATORSYNC_TIKTOK_BASE_URL", "https://tiktok.test")
    monkeypatch.setenv("CREATORSYNC_TIKTOK_TOKEN", "secret")
    for name in (
        "CREATORSYNC_INSTAGRAM_BASE_URL",
        "CREATORSYNC_INSTAGRAM_TOKEN",
        "CREATORSYNC_YOUTUBE_BASE_URL",
        "CREATORSYNC_YOUTUBE_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    requested: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        requested.append(f"{request.url.host}{request.url.path}")
        return httpx.Response(200, json={"followerCount": 1200, "bio": "hello"})

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(
        cli, "build_platform_adapters", partial(build_platform_adapters, client_factory=factory)
    )

    cli.main(["sync", str(path), "--force"])

    output = json.loads(capsys.readouterr().out)
    assert output["success"] is True
    assert output["synced_platforms"] == ["tiktok"]
    assert output["failed_platforms"] == {"instagram": "AdapterUnavailableError"}
    assert requested == ["tiktok.test/v1/profiles/creator_on_tiktok"]
    identity = load_identity(path, scorer=EvidenceScorer())
    assert identity.profile_value("bio") == "hello"
