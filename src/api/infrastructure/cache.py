"""Advisory Redis cache.

Every entry here is a hint: callers must be able to answer correctly on a
miss. Connection and protocol errors are reported through the probe and
degrade to a miss instead of propagating.
"""

from __future__ import annotations

import json
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from infrastructure.observability import CacheProbe, DefaultCacheProbe


class CacheStore:
    """Namespaced get/set/delete helpers over an async Redis client."""

    def __init__(
        self,
        client: Redis,
        key_prefix: str = "tessera",
        probe: CacheProbe | None = None,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._probe = probe or DefaultCacheProbe()

    def key(self, *parts: str) -> str:
        """Build a namespaced key, e.g. ``key("email-tenant", email)``."""
        return ":".join((self._key_prefix, *parts))

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as e:
            self._probe.cache_unavailable("get", key, e)
            return None

    async def set(self, key: str, value: str, ttl: int) -> bool:
        try:
            await self._client.set(key, value, ex=ttl)
            return True
        except RedisError as e:
            self._probe.cache_unavailable("set", key, e)
            return False

    async def get_json(self, key: str) -> dict[str, Any] | None:
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    async def set_json(self, key: str, value: dict[str, Any], ttl: int) -> bool:
        return await self.set(key, json.dumps(value), ttl)

    async def delete(self, key: str) -> bool:
        try:
            await self._client.delete(key)
            return True
        except RedisError as e:
            self._probe.cache_unavailable("delete", key, e)
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern.

        Uses SCAN rather than KEYS so large keyspaces are not blocked.

        Returns:
            Number of keys deleted (0 when the cache is unavailable)
        """
        deleted = 0
        try:
            batch: list[str] = []
            async for key in self._client.scan_iter(match=pattern, count=500):
                batch.append(key)
                if len(batch) >= 500:
                    deleted += await self._client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self._client.delete(*batch)
        except RedisError as e:
            self._probe.cache_unavailable("delete_pattern", pattern, e)
        return deleted

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            self._probe.cache_unavailable("ping", "", e)
            return False
