from __future__ import annotations

import pydantic
import pytest

from creatorsync.adapters.platforms import changed_fields, to_profile, transform_metrics
from tests.helpers.identities import make_profile


def test_linkedin_profile_maps_connections_and_summary() -> None:
    profile = to_profile(
        "linkedin",
        {
            "displayName": "Jay Doe",
            "connectionCount": 500,
            "headline": "Painter",
            "summary": "",
            "profilePictureUrl": "https://img.test/jay.png",
        },
    )

    assert profile.follower_count == 500
    assert profile.bio == "Painter"
    assert profile.avatar_url == "https://img.test/jay.png"
    assert profile.content_count is None
    assert profile.platform_verified is False


def test_instagram_profile_maps_media_count() -> None:
    profile = to_profile(
        "instagram", {"followerCount": 950, "mediaCount": 95, "verified": True, "bio": "Art"}
    )

    assert profile.content_count == 95
    assert profile.platform_verified is True


def test_metrics_fall_back_to_follower_reach() -> None:
    metrics = transform_metrics("tiktok", {"followerCount": 1000, "metrics": {"growthRate": -0.1}})

    assert metrics.total_reach == 1000
    assert metrics.growth_rate == -0.1


def test_missing_required_fields_fail_validation() -> None:
    with pytest.raises(pydantic.ValidationError):
        to_profile("youtube", {"subscriberCount": 10})


def test_changed_fields_compares_normalized_values() -> None:
    previous = make_profile(display_name="Jane  Doe", follower_count=10, bio="hi")
    current = make_profile(display_name="jane doe", follower_count=11, bio="hi")

    assert changed_fields(previous, current) == frozenset({"follower_count"})
    assert changed_fields(None, current) == frozenset({"display_name", "follower_count", "bio"})
