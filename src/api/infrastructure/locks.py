"""Distributed job serialization with Redis locks.

Scheduled batch commands (pool replenishment, migrations, lookup backfill)
must not overlap across hosts. A second run fails fast instead of waiting.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from infrastructure.observability import DefaultJobLockProbe, JobLockProbe


class JobAlreadyRunningError(Exception):
    """Raised when another run of the same job holds its lock."""

    def __init__(self, name: str):
        super().__init__(f"Job '{name}' is already running")
        self.name = name


class JobLock:
    """Non-blocking, auto-expiring lock around a named job."""

    def __init__(
        self,
        client: Redis,
        key_prefix: str = "tessera",
        timeout: int = 3600,
        probe: JobLockProbe | None = None,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._timeout = timeout
        self._probe = probe or DefaultJobLockProbe()

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        """Hold the lock for ``name`` for the duration of the block.

        Raises:
            JobAlreadyRunningError: If the lock is currently held elsewhere
        """
        lock = self._client.lock(
            f"{self._key_prefix}:job-lock:{name}",
            timeout=self._timeout,
            blocking=False,
        )
        if not await lock.acquire():
            self._probe.lock_busy(name)
            raise JobAlreadyRunningError(name)

        self._probe.lock_acquired(name)
        try:
            yield
        finally:
            try:
                await lock.release()
                self._probe.lock_released(name)
            except (LockError, RedisError) as e:
                # Lock expired before the job finished
                self._probe.lock_release_failed(name, e)
