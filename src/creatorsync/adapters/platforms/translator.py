"""Translate platform profile payloads into normalized domain values.

Every translator is a pure function of the payload, so the same raw response
always normalizes to the same profile and metrics.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from creatorsync.domain.model import NormalizedMetrics, PlatformProfile
from creatorsync.domain.reconciliation.fields import TRACKED_FIELDS, comparable

from .schema import (
    InstagramProfile,
    LinkedInProfile,
    MetricsPayload,
    ProfilePayload,
    TikTokProfile,
    YouTubeProfile,
)

if TYPE_CHECKING:
    from .schema import AnyProfile, ProfilePayloadInput


@dataclass(frozen=True, slots=True)
class ProfileTranslator:
    schema: type[ProfilePayload]
    to_profile: Callable[[Any], PlatformProfile]


def _engagement(payload: ProfilePayload) -> float | None:
    return payload.metrics.engagement_rate if payload.metrics is not None else None


def _tiktok_profile(payload: TikTokProfile) -> PlatformProfile:
    return PlatformProfile(
        display_name=payload.display_name,
        bio=payload.bio,
        avatar_url=payload.avatar_url,
        follower_count=payload.follower_count,
        following_count=payload.following_count,
        content_count=payload.video_count,
        engagement_rate=_engagement(payload),
        platform_verified=payload.verified,
    )


def _instagram_profile(payload: InstagramProfile) -> PlatformProfile:
    return PlatformProfile(
        display_name=payload.display_name,
        bio=payload.bio,
        avatar_url=payload.avatar_url,
        follower_count=payload.follower_count,
        following_count=payload.following_count,
        content_count=payload.media_count,
        engagement_rate=_engagement(payload),
        platform_verified=payload.verified,
    )


def _youtube_profile(payload: YouTubeProfile) -> PlatformProfile:
    return PlatformProfile(
        display_name=payload.display_name,
        bio=payload.description,
        avatar_url=payload.thumbnail_url,
        follower_count=payload.subscriber_count,
        content_count=payload.video_count,
        engagement_rate=_engagement(payload),
        platform_verified=payload.verified,
    )


def _linkedin_profile(payload: LinkedInProfile) -> PlatformProfile:
    # LinkedIn has no verified badge and no content counter
    return PlatformProfile(
        display_name=payload.display_name,
        bio=payload.summary or payload.headline,
        avatar_url=payload.profile_picture_url,
        follower_count=payload.connection_count,
        engagement_rate=_engagement(payload),
    )


PROFILE_TRANSLATORS: Mapping[str, ProfileTranslator] = MappingProxyType(
    {
        "tiktok": ProfileTranslator(TikTokProfile, _tiktok_profile),
        "instagram": ProfileTranslator(InstagramProfile, _instagram_profile),
        "youtube": ProfileTranslator(YouTubeProfile, _youtube_profile),
        "linkedin": ProfileTranslator(LinkedInProfile, _linkedin_profile),
    }
)


def translator_for(platform_id: str) -> ProfileTranslator:
    try:
        return PROFILE_TRANSLATORS[platform_id]
    except KeyError as exc:
        raise KeyError(f"No profile translator for platform {platform_id!r}") from exc


def parse_profile(platform_id: str, raw: ProfilePayloadInput) -> AnyProfile:
    """Validate ``raw`` against the platform's schema (raises pydantic ``ValidationError``)."""

    translator = translator_for(platform_id)
    if isinstance(raw, translator.schema):
        return raw
    return translator.schema.model_validate(raw)  # type: ignore[return-value]


def to_profile(platform_id: str, raw: ProfilePayloadInput) -> PlatformProfile:
    return translator_for(platform_id).to_profile(parse_profile(platform_id, raw))


def to_metrics(payload: ProfilePayload, *, follower_count: int | None = None) -> NormalizedMetrics:
    metrics = payload.metrics or MetricsPayload()
    return NormalizedMetrics(
        total_reach=metrics.total_reach or follower_count or 0,
        engagement_rate=metrics.engagement_rate,
        average_views=metrics.average_views,
        average_likes=metrics.average_likes,
        average_comments=metrics.average_comments,
        average_shares=metrics.average_shares,
        growth_rate=metrics.growth_rate,
    )


def transform_metrics(platform_id: str, raw: ProfilePayloadInput) -> NormalizedMetrics:
    payload = parse_profile(platform_id, raw)
    profile = translator_for(platform_id).to_profile(payload)
    return to_metrics(payload, follower_count=profile.follower_count)


def changed_fields(previous: PlatformProfile | None, current: PlatformProfile) -> frozenset[str]:
    """Tracked fields whose normalized value moved between two profiles."""

    changed: set[str] = set()
    for name, tracked in TRACKED_FIELDS.items():
        value = current.value_of(name)
        if value is None:
            continue
        prior = previous.value_of(name) if previous is not None else None
        if prior is None or comparable(tracked, prior) != comparable(tracked, value):
            changed.add(name)
    return frozenset(changed)
