"""Pydantic models describing the platform profile payloads."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class PlatformBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MetricsPayload(PlatformBaseModel):
    total_reach: int = Field(default=0, alias="totalReach", ge=0)
    engagement_rate: float = Field(default=0.0, alias="engagementRate", ge=0)
    average_views: float = Field(default=0.0, alias="averageViews", ge=0)
    average_likes: float = Field(default=0.0, alias="averageLikes", ge=0)
    average_comments: float = Field(default=0.0, alias="averageComments", ge=0)
    average_shares: float = Field(default=0.0, alias="averageShares", ge=0)
    growth_rate: float = Field(default=0.0, alias="growthRate")


class ProfilePayload(PlatformBaseModel):
    display_name: str | None = Field(default=None, alias="displayName")
    metrics: MetricsPayload | None = None

    _normalize_display_name = field_validator("display_name", mode="before")(_blank_to_none)


class TikTokProfile(ProfilePayload):
    follower_count: int = Field(alias="followerCount", ge=0)
    following_count: int | None = Field(default=None, alias="followingCount", ge=0)
    likes_count: int | None = Field(default=None, alias="likesCount", ge=0)
    video_count: int | None = Field(default=None, alias="videoCount", ge=0)
    verified: bool = False
    bio: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")

    _normalize_text = field_validator("bio", "avatar_url", mode="before")(_blank_to_none)


class InstagramProfile(ProfilePayload):
    follower_count: int = Field(alias="followerCount", ge=0)
    following_count: int | None = Field(default=None, alias="followingCount", ge=0)
    media_count: int | None = Field(default=None, alias="mediaCount", ge=0)
    verified: bool = False
    bio: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    business_account: bool = Field(default=False, alias="businessAccount")

    _normalize_text = field_validator("bio", "avatar_url", mode="before")(_blank_to_none)


class YouTubeProfile(ProfilePayload):
    channel_id: str = Field(alias="channelId")
    subscriber_count: int = Field(alias="subscriberCount", ge=0)
    video_count: int | None = Field(default=None, alias="videoCount", ge=0)
    view_count: int | None = Field(default=None, alias="viewCount", ge=0)
    description: str | None = None
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    verified: bool = False

    _normalize_text = field_validator("description", "thumbnail_url", mode="before")(
        _blank_to_none
    )


class LinkedInProfile(ProfilePayload):
    connection_count: int = Field(alias="connectionCount", ge=0)
    headline: str | None = None
    summary: str | None = None
    industry: str | None = None
    location: str | None = None
    profile_picture_url: str | None = Field(default=None, alias="profilePictureUrl")

    _normalize_text = field_validator(
        "headline", "summary", "industry", "location", "profile_picture_url", mode="before"
    )(_blank_to_none)


type AnyProfile = TikTokProfile | InstagramProfile | YouTubeProfile | LinkedInProfile
ProfilePayloadInput = AnyProfile | Mapping[str, object]
