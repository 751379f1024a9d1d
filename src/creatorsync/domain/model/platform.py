"""Platform connection state and the snapshots fetched from platforms."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .enums import ConnectionStatus, SyncFrequency

if TYPE_CHECKING:
    from .evidence import ContentCredential, VerificationMethod

type FieldScalar = str | int | float


@dataclass(frozen=True, slots=True, kw_only=True)
class PlatformProfile:
    """Normalized profile fields as reported by one platform."""

    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    follower_count: int | None = None
    following_count: int | None = None
    content_count: int | None = None
    engagement_rate: float | None = None
    platform_verified: bool = False

    def value_of(self, name: str) -> FieldScalar | None:
        return getattr(self, name, None)

    def reported_fields(self) -> tuple[str, ...]:
        return tuple(
            f.name
            for f in fields(self)
            if f.name != "platform_verified" and getattr(self, f.name) is not None
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class NormalizedMetrics:
    total_reach: int = 0
    engagement_rate: float = 0.0
    average_views: float = 0.0
    average_likes: float = 0.0
    average_comments: float = 0.0
    average_shares: float = 0.0
    growth_rate: float = 0.0


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncSettings:
    auto_sync: bool = True
    sync_frequency: SyncFrequency = SyncFrequency.REALTIME
    # empty means every tracked field
    sync_fields: frozenset[str] = frozenset()

    def allows(self, field_name: str) -> bool:
        return not self.sync_fields or field_name in self.sync_fields


@dataclass(eq=False, kw_only=True)
class PlatformConnection:
    """Link between an identity and one account on an external platform."""

    platform_id: str
    username: str
    user_id: str | None = None
    display_name: str | None = None
    connection_status: ConnectionStatus = ConnectionStatus.CONNECTED
    connected_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    last_sync_at: datetime | None = None
    metrics: NormalizedMetrics | None = None
    profile: PlatformProfile | None = None
    sync_settings: SyncSettings = field(default_factory=SyncSettings)

    @property
    def is_fetchable(self) -> bool:
        return self.connection_status in {ConnectionStatus.CONNECTED, ConnectionStatus.VERIFIED}

    @property
    def is_verified(self) -> bool:
        return self.connection_status is ConnectionStatus.VERIFIED


@dataclass(frozen=True, slots=True, kw_only=True)
class PlatformSnapshot:
    """Immutable result of one successful platform fetch."""

    platform_id: str
    fetched_at: datetime
    profile: PlatformProfile
    metrics: NormalizedMetrics | None = None
    verification_methods: tuple[VerificationMethod, ...] = ()
    content_credentials: tuple[ContentCredential, ...] = ()
    event_id: str | None = None
