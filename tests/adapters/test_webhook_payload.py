from __future__ import annotations

import json

import pytest

from creatorsync.adapters.webhook import parse_webhook_payload, to_update_event
from creatorsync.domain.errors import ValidationError
from tests.helpers.identities import NOW


def _body(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "eventId": "evt_42",
        "identityId": "uci_0123456789abcdef",
        "platformId": " TikTok ",
        "occurredAt": "2025-06-01T14:00:00+02:00",
        "changes": {"bio": "New bio", "followerCount": 1500, "unknown": "ignored"},
        "metrics": {"totalReach": 2000, "engagementRate": 0.04},
        "verified": True,
    }
    body.update(overrides)
    return body


def test_payload_becomes_a_platform_update_event() -> None:
    event = to_update_event(parse_webhook_payload(json.dumps(_body())))

    assert event.event_id == "evt_42"
    assert event.platform_id == "tiktok"
    assert event.occurred_at == NOW
    assert event.changes == {"bio": "New bio", "follower_count": 1500}
    assert event.metrics is not None
    assert event.metrics.total_reach == 2000
    assert event.platform_verified is True


def test_naive_timestamps_are_read_as_utc() -> None:
    payload = parse_webhook_payload(_body(occurredAt="2025-06-01T12:00:00"))

    assert payload.occurred_at == NOW


@pytest.mark.parametrize(
    "overrides",
    [
        {"eventId": ""},
        {"occurredAt": "yesterday"},
        {"changes": {"followerCount": -5}},
    ],
)
def test_malformed_payloads_raise_validation_error(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError, match="Malformed webhook payload"):
        parse_webhook_payload(_body(**overrides))


def test_invalid_json_raises_validation_error() -> None:
    with pytest.raises(ValidationError):
        parse_webhook_payload(b"{not json")
