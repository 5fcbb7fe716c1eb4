"""Warm pool of pre-created, pre-migrated databases.

Signup claims a ready database instead of waiting for CREATE DATABASE and
every migration script. A scheduled job keeps the number of free entries
at the configured floor.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.exceptions import DatabaseError
from infrastructure.settings import TenancySettings
from tenancy.application.observability import (
    DefaultPoolProvisionerProbe,
    PoolProvisionerProbe,
)
from tenancy.application.services.database_lifecycle import DatabaseLifecycleManager
from tenancy.domain.aggregates import PooledDatabase
from tenancy.domain.value_objects import TenantId
from tenancy.ports.repositories import IPooledDatabaseRepository


class DatabasePoolProvisioner:
    """Application service maintaining and handing out pooled databases."""

    def __init__(
        self,
        pool_repository: IPooledDatabaseRepository,
        lifecycle: DatabaseLifecycleManager,
        session: AsyncSession,
        settings: TenancySettings,
        probe: PoolProvisionerProbe | None = None,
    ):
        self._pool_repository = pool_repository
        self._lifecycle = lifecycle
        self._session = session
        self._settings = settings
        self._probe = probe or DefaultPoolProvisionerProbe()

    async def count_available(self) -> int:
        async with self._session.begin():
            return await self._pool_repository.count_available()

    async def provision(self, n: int) -> int:
        """Create up to ``n`` free entries, never exceeding the pool maximum.

        Failures are logged and skipped rather than raised.

        Returns:
            Number of entries actually created
        """
        room = max(0, self._settings.pool_max_size - await self.count_available())
        requested = min(max(0, n), room)

        created = 0
        for _ in range(requested):
            entry = PooledDatabase.create(self._settings.pool_prefix)
            try:
                await self._lifecycle.ensure_database(entry.name)
                await self._lifecycle.migrate_database(entry.name)
                async with self._session.begin():
                    await self._pool_repository.add(entry)
            except (DatabaseError, SQLAlchemyError, OSError) as e:
                self._probe.provision_failed(entry.name, e)
                continue

            created += 1
            self._probe.entry_provisioned(entry.name)

        self._probe.pool_provisioned(requested, created)
        return created

    async def replenish(self) -> int:
        """Top the pool up to the configured floor."""
        available = await self.count_available()
        return await self.provision(max(0, self._settings.pool_floor - available))

    async def claim(self, tenant_id: TenantId) -> PooledDatabase | None:
        """Atomically assign a free entry to a tenant.

        Losing a race for an entry moves on to the next free one.

        Returns:
            The claimed entry, or None if the pool is empty or every
            attempt lost its race
        """
        lost: set[str] = set()
        for _ in range(self._settings.claim_attempts):
            async with self._session.begin():
                entry = await self._pool_repository.next_free(skip=lost)
                if entry is None:
                    break
                won = await self._pool_repository.mark_assigned(entry.id, tenant_id)

            if won:
                entry.assigned = True
                entry.tenant_id = tenant_id
                self._probe.entry_claimed(entry.name, tenant_id.value)
                return entry
            lost.add(entry.id)

        self._probe.pool_exhausted(tenant_id.value)
        return None

    async def release(self, name: str) -> bool:
        """Return a claimed entry whose database was left untouched."""
        async with self._session.begin():
            return await self._pool_repository.release(name)

    async def list_entries(self, assigned: bool | None = None) -> list[PooledDatabase]:
        async with self._session.begin():
            return await self._pool_repository.list_all(assigned=assigned)
