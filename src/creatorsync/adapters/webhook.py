"""Validation of inbound platform webhook payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from creatorsync.domain.errors import ValidationError
from creatorsync.domain.model import NormalizedMetrics
from creatorsync.domain.sync import PlatformUpdateEvent

from .platforms.schema import MetricsPayload


class WebhookBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProfileChanges(WebhookBaseModel):
    display_name: str | None = Field(default=None, alias="displayName")
    bio: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    follower_count: int | None = Field(default=None, alias="followerCount", ge=0)
    following_count: int | None = Field(default=None, alias="followingCount", ge=0)
    content_count: int | None = Field(default=None, alias="contentCount", ge=0)
    engagement_rate: float | None = Field(default=None, alias="engagementRate", ge=0)


class WebhookPayload(WebhookBaseModel):
    event_id: str = Field(alias="eventId", min_length=1)
    identity_id: str = Field(alias="identityId", min_length=1)
    platform_id: str = Field(alias="platformId", min_length=1)
    occurred_at: datetime = Field(alias="occurredAt")
    changes: ProfileChanges = Field(default_factory=ProfileChanges)
    metrics: MetricsPayload | None = None
    verified: bool | None = None

    @field_validator("platform_id", mode="before")
    @classmethod
    def _lower(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("occurred_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def parse_webhook_payload(payload: Mapping[str, object] | str | bytes) -> WebhookPayload:
    """Validate a webhook body; malformed input raises the domain ``ValidationError``."""

    try:
        if isinstance(payload, str | bytes):
            return WebhookPayload.model_validate_json(payload)
        return WebhookPayload.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Malformed webhook payload: {exc.error_count()} error(s)") from exc


def to_update_event(payload: WebhookPayload) -> PlatformUpdateEvent:
    metrics = payload.metrics
    return PlatformUpdateEvent(
        event_id=payload.event_id,
        platform_id=payload.platform_id,
        occurred_at=payload.occurred_at,
        changes=payload.changes.model_dump(exclude_none=True),
        metrics=None
        if metrics is None
        else NormalizedMetrics(
            total_reach=metrics.total_reach,
            engagement_rate=metrics.engagement_rate,
            average_views=metrics.average_views,
            average_likes=metrics.average_likes,
            average_comments=metrics.average_comments,
            average_shares=metrics.average_shares,
            growth_rate=metrics.growth_rate,
        ),
        platform_verified=payload.verified,
    )
