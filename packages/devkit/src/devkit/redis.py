from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class AsyncRedisManager:
    """Lazily connected redis client that reconnects and retries on failure.

    Unknown attributes proxy to the underlying client, so the manager can be
    handed to any store expecting a redis-like client.
    """

    def __init__(
        self,
        url: str,
        *,
        max_retries: int = 3,
        base_delay_seconds: float = 0.2,
        client_factory: Callable[[str], Any] | None = None,
        sleep_fn: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self._url = url
        self._max_retries = max_retries
        self._base_delay_seconds = base_delay_seconds
        self._client_factory = client_factory
        self._sleep_fn = sleep_fn
        self._client: Any | None = None
        self._lock = asyncio.Lock()

    async def get_client(self) -> Any:
        async with self._lock:
            if self._client is None:
                self._client = self._new_client()
                await self._client.ping()
            return self._client

    async def reconnect(self) -> Any:
        async with self._lock:
            if self._client is not None:
                try:
                    await self._client.close()
                except Exception:
                    logger.warning("redis_close_failed", extra={"component": "devkit"}, exc_info=True)
            self._client = self._new_client()
            await self._client.ping()
            return self._client

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None:
                try:
                    await self._client.close()
                finally:
                    self._client = None

    async def execute(self, operation: str, *args, **kwargs):
        attempt = 0
        while True:
            client = await self.get_client()
            method = getattr(client, operation)
            try:
                return await method(*args, **kwargs)
            except Exception:
                attempt += 1
                if attempt >= self._max_retries:
                    raise
                logger.warning(
                    "redis_operation_retry",
                    extra={"component": "devkit", "operation": operation, "attempt": attempt},
                )
                await self.reconnect()
                await self._sleep_fn(self._base_delay_seconds * (2 ** (attempt - 1)))

    def _new_client(self) -> Any:
        if self._client_factory is not None:
            return self._client_factory(self._url)
        import redis.asyncio as redis

        return redis.from_url(
            self._url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        async def _call(*args, **kwargs):
            return await self.execute(name, *args, **kwargs)

        return _call


def create_redis_client(url: str | None) -> AsyncRedisManager | None:
    if not url:
        return None
    return AsyncRedisManager(url)


def create_contact_store(redis_client: Any | None):
    from guardian_api.repositories.contact_store import InMemoryContactStore, RedisContactStore

    if redis_client is None:
        return InMemoryContactStore()
    return RedisContactStore(redis_client)


def create_report_store(redis_client: Any | None):
    from guardian_api.repositories.report_store import InMemoryReportStore, RedisReportStore

    if redis_client is None:
        return InMemoryReportStore()
    return RedisReportStore(redis_client)


def create_cache_store(redis_client: Any | None):
    from guardian_api.cache import InMemoryCacheStore, RedisCacheStore

    if redis_client is None:
        return InMemoryCacheStore()
    return RedisCacheStore(redis_client)


def create_rate_limit_store(redis_client: Any | None, window_seconds: int = 60):
    from guardian_api.rate_limit import InMemoryRateLimitStore, RedisRateLimitStore

    if redis_client is None:
        return InMemoryRateLimitStore()
    return RedisRateLimitStore(redis_client, window_seconds=window_seconds)
