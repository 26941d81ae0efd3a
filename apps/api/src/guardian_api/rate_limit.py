from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from fastapi import Request


class RateLimitStore(ABC):
    """Request timestamps per client key within a sliding window."""

    @abstractmethod
    async def add_request(self, key: str, now_seconds: float) -> None:
        raise NotImplementedError

    @abstractmethod
    async def count_since(self, key: str, cutoff_seconds: float) -> int:
        raise NotImplementedError


class RedisLikeClient(Protocol):
    async def zadd(self, key: str, mapping: dict[str, float]) -> int: ...

    async def zremrangebyscore(self, key: str, min: float, max: float) -> int: ...

    async def zcard(self, key: str) -> int: ...

    async def expire(self, key: str, time: int) -> bool: ...


class InMemoryRateLimitStore(RateLimitStore):
    def __init__(self) -> None:
        self._requests: dict[str, deque[float]] = defaultdict(deque)

    async def add_request(self, key: str, now_seconds: float) -> None:
        self._requests[key].append(now_seconds)

    async def count_since(self, key: str, cutoff_seconds: float) -> int:
        window = self._requests[key]
        while window and window[0] < cutoff_seconds:
            window.popleft()
        return len(window)


class RedisRateLimitStore(RateLimitStore):
    """One sorted set per client, scored by request time."""

    def __init__(self, client: RedisLikeClient, window_seconds: int = 60, prefix: str = "rate_limit") -> None:
        self._client = client
        self._window_seconds = window_seconds
        self._prefix = prefix

    async def add_request(self, key: str, now_seconds: float) -> None:
        redis_key = f"{self._prefix}:{key}"
        await self._client.zadd(redis_key, {f"{now_seconds:.6f}:{uuid4()}": now_seconds})
        await self._client.expire(redis_key, self._window_seconds + 5)

    async def count_since(self, key: str, cutoff_seconds: float) -> int:
        redis_key = f"{self._prefix}:{key}"
        await self._client.zremrangebyscore(redis_key, float("-inf"), cutoff_seconds - 1e-9)
        return await self._client.zcard(redis_key)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int


class SlidingWindowRateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        limit_per_minute: int = 100,
        window_seconds: int = 60,
    ) -> None:
        self._store = store
        self._limit = limit_per_minute
        self._window_seconds = window_seconds

    async def check(self, key: str, now_seconds: float) -> RateLimitDecision:
        used = await self._store.count_since(key, now_seconds - self._window_seconds)
        if used >= self._limit:
            return RateLimitDecision(allowed=False, limit=self._limit, remaining=0)
        await self._store.add_request(key, now_seconds)
        return RateLimitDecision(allowed=True, limit=self._limit, remaining=self._limit - used - 1)

    async def allow(self, key: str, now_seconds: float) -> bool:
        return (await self.check(key, now_seconds)).allowed


def resolve_client_key(request: Request) -> str:
    """Mobile clients send ``x-client-id``; anything else is keyed by address."""
    forwarded = request.headers.get("x-client-id")
    if forwarded:
        return forwarded
    if request.client:
        return request.client.host
    return "anonymous"
