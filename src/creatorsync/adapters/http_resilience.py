"""Rate-limited, retrying, caching async HTTP client used by platform adapters."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as CachedResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from creatorsync.config.http_resilience import (
        CacheConfig,
        RateLimit,
        ResilienceConfig,
        RetryPolicy,
        ShouldCacheHook,
    )

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


def build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


class ResilientClient:
    """Async HTTP client for one platform API.

    Requests pass through the platform's rate limiter, then the retry
    transport, and are served from the response cache when ``config.cache``
    enables one. ``transport`` replaces the network layer underneath the
    retry transport; tests pass an ``httpx.MockTransport`` here.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = build_limiter(config.ratelimit)
        retrying = RetryTransport(transport=transport, retry=build_retry(config.retry))
        headers = dict(config.default_headers or {})
        base_url = config.base_url or ""

        storage = _cache_storage(config.cache)
        if storage is None:
            self._client = httpx.AsyncClient(
                base_url=base_url,
                headers=headers,
                timeout=config.timeout_seconds,
                transport=retrying,
            )
        else:
            self._client = AsyncCacheClient(
                base_url=base_url,
                headers=headers,
                timeout=config.timeout_seconds,
                transport=retrying,
                storage=storage,
                policy=_cache_policy(config.cache),
            )
        log.debug(
            "HTTP client for %s: retries=%s, ratelimit=%s, cached=%s",
            config.name,
            config.retry.total,
            config.ratelimit,
            storage is not None,
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, *, params: Mapping[str, str] | None = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(path, params=params)
        async with self._limiter:
            return await self._client.get(path, params=params)


class _JsonBodyFilter(BaseFilter[CachedResponse]):
    """Admit a response to the cache only when its decoded JSON passes ``predicate``."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self.predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: CachedResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return True
        try:
            decoded = json.loads(body)
        except ValueError:
            # also covers bodies that are not valid UTF-8
            return False
        return bool(self.predicate(decoded))


def _cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None or not config.enabled:
        return None
    match config.backend:
        case "memory":
            path = ":memory:"
        case "sqlite":
            if not config.sqlite_path:
                raise ValueError("sqlite cache backend needs sqlite_path")
            path = config.sqlite_path
        case other:
            raise ValueError(f"Unsupported cache backend: {other}")
    return AsyncSqliteStorage(
        database_path=path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )


def _cache_policy(config: CacheConfig | None) -> FilterPolicy | None:
    if config is None or config.should_cache is None:
        return None
    return FilterPolicy(response_filters=[_JsonBodyFilter(config.should_cache)])


__all__ = ["ResilientClient", "build_limiter", "build_retry"]
