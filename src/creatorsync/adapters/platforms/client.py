"""HTTP profile adapter shared by all supported platforms."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
import pydantic

from creatorsync.adapters.http_resilience import ResilientClient
from creatorsync.config.errors import ConfigurationError
from creatorsync.config.platforms import get_platform_config
from creatorsync.domain.errors import (
    AdapterPayloadError,
    AdapterRateLimitedError,
    AdapterTimeoutError,
    AdapterUnavailableError,
)
from creatorsync.domain.model import PlatformSnapshot

from .translator import changed_fields, parse_profile, to_metrics, transform_metrics, translator_for

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from creatorsync.config.http_resilience import ResilienceConfig
    from creatorsync.config.platforms import PlatformEndpointConfig
    from creatorsync.domain.model import (
        NormalizedMetrics,
        PlatformConnection,
        PlatformProfile,
    )
    from creatorsync.domain.ports import PlatformAdapter

log = getLogger(__name__)

PROFILE_PATH = "/v1/profiles/{username}"

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


@dataclass(slots=True)
class HttpPlatformAdapter:
    """Fetch a creator profile as JSON and normalize it for one platform.

    The HTTP client is created on the first fetch and reused until
    ``aclose``, so the platform's rate limit and response cache span every
    fetch made through this adapter.
    """

    platform_id: str
    endpoint: PlatformEndpointConfig
    client_factory: ClientFactory = field(default=_default_client_factory)
    profile_path: str = PROFILE_PATH
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        translator_for(self.platform_id)

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.endpoint.resilience)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    async def fetch_profile_data(self, connection: PlatformConnection) -> PlatformSnapshot:
        path = self.profile_path.format(username=connection.username)
        raw = await self._request(path)
        try:
            payload = parse_profile(self.platform_id, raw)
        except pydantic.ValidationError as exc:
            raise AdapterPayloadError(
                self.platform_id, f"profile payload failed validation: {exc.error_count()} error(s)"
            ) from exc
        profile = translator_for(self.platform_id).to_profile(payload)
        return PlatformSnapshot(
            platform_id=self.platform_id,
            fetched_at=datetime.now(tz=UTC),
            profile=profile,
            metrics=to_metrics(payload, follower_count=profile.follower_count),
        )

    def transform_data(self, raw: Mapping[str, object]) -> NormalizedMetrics:
        try:
            return transform_metrics(self.platform_id, raw)
        except pydantic.ValidationError as exc:
            raise AdapterPayloadError(self.platform_id, "metrics payload failed validation") from exc

    def detect_changes(
        self, previous: PlatformProfile | None, current: PlatformProfile
    ) -> frozenset[str]:
        return changed_fields(previous, current)

    async def _request(self, path: str) -> object:
        try:
            response = await self.client.get(path)
            if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
                raise AdapterRateLimitedError(
                    self.platform_id,
                    "rate limited by platform",
                    retry_after=_retry_after(response),
                )
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise AdapterTimeoutError(self.platform_id, "platform request timed out") from exc
        except httpx.HTTPStatusError as exc:
            log.warning(
                "%s profile request failed with HTTP %s", self.platform_id, exc.response.status_code
            )
            raise AdapterUnavailableError(
                self.platform_id, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AdapterUnavailableError(self.platform_id, str(exc) or type(exc).__name__) from exc
        except json.JSONDecodeError as exc:
            raise AdapterPayloadError(self.platform_id, "response is not valid JSON") from exc


def build_platform_adapters(
    platform_ids: Collection[str],
    *,
    client_factory: ClientFactory | None = None,
) -> dict[str, HttpPlatformAdapter]:
    """Configure HTTP adapters from ``CREATORSYNC_<PLATFORM>_*`` environment variables.

    A platform that is not configured, or has no profile translator, is left
    out of the mapping with a warning; the coordinator then reports it as
    unavailable while the other platforms still sync.
    """

    adapters: dict[str, HttpPlatformAdapter] = {}
    for platform_id in sorted(platform_ids):
        try:
            adapter = HttpPlatformAdapter(
                platform_id=platform_id,
                endpoint=get_platform_config(platform_id),
            )
        except ConfigurationError as exc:
            log.warning("Skipping %s: %s", platform_id, exc)
            continue
        except KeyError:
            log.warning("Skipping %s: no profile translator for this platform", platform_id)
            continue
        if client_factory is not None:
            adapter.client_factory = client_factory
        adapters[platform_id] = adapter
    return adapters


async def close_platform_adapters(adapters: Mapping[str, HttpPlatformAdapter]) -> None:
    for adapter in adapters.values():
        await adapter.aclose()


if TYPE_CHECKING:
    _adapter_check: PlatformAdapter = HttpPlatformAdapter(
        "tiktok", get_platform_config("tiktok")
    )
