"""PostgreSQL implementation of IPooledDatabaseRepository."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Collection

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain.aggregates import PooledDatabase
from tenancy.domain.value_objects import TenantId
from tenancy.infrastructure.models import PooledDatabaseModel
from tenancy.infrastructure.observability import (
    DefaultPoolRepositoryProbe,
    PoolRepositoryProbe,
)
from tenancy.ports.repositories import IPooledDatabaseRepository


class PooledDatabaseRepository(IPooledDatabaseRepository):
    """Repository managing the warm pool table of the central registry.

    Claims rely on a conditional UPDATE rather than row locks: the statement
    only matches while ``assigned`` is false, so the first committer wins
    and every other claimer sees a row count of zero.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: PoolRepositoryProbe | None = None,
    ) -> None:
        self._session = session
        self._probe = probe or DefaultPoolRepositoryProbe()

    async def add(self, entry: PooledDatabase) -> None:
        self._session.add(
            PooledDatabaseModel(
                id=entry.id,
                name=entry.name,
                assigned=entry.assigned,
                tenant_id=entry.tenant_id.value if entry.tenant_id else None,
                assigned_at=entry.assigned_at,
                created_at=entry.created_at,
            )
        )
        await self._session.flush()
        self._probe.entry_registered(entry.name)

    async def count_available(self) -> int:
        stmt = (
            select(func.count())
            .select_from(PooledDatabaseModel)
            .where(PooledDatabaseModel.assigned.is_(False))
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def next_free(self, skip: Collection[str] = ()) -> PooledDatabase | None:
        stmt = (
            select(PooledDatabaseModel)
            .where(PooledDatabaseModel.assigned.is_(False))
            .order_by(PooledDatabaseModel.created_at, PooledDatabaseModel.id)
            .limit(1)
        )
        if skip:
            stmt = stmt.where(PooledDatabaseModel.id.not_in(list(skip)))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def mark_assigned(self, entry_id: str, tenant_id: TenantId) -> bool:
        stmt = (
            update(PooledDatabaseModel)
            .where(
                PooledDatabaseModel.id == entry_id,
                PooledDatabaseModel.assigned.is_(False),
            )
            .values(
                assigned=True,
                tenant_id=tenant_id.value,
                assigned_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            self._probe.claim_lost(entry_id, tenant_id.value)
            return False
        return True

    async def release(self, name: str) -> bool:
        stmt = (
            update(PooledDatabaseModel)
            .where(
                PooledDatabaseModel.name == name,
                PooledDatabaseModel.assigned.is_(True),
            )
            .values(assigned=False, tenant_id=None, assigned_at=None)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        released = result.rowcount == 1
        if released:
            self._probe.entry_released(name)
        return released

    async def list_all(self, assigned: bool | None = None) -> list[PooledDatabase]:
        stmt = select(PooledDatabaseModel).order_by(
            PooledDatabaseModel.created_at, PooledDatabaseModel.id
        )
        if assigned is not None:
            stmt = stmt.where(PooledDatabaseModel.assigned.is_(assigned))
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @staticmethod
    def _to_domain(model: PooledDatabaseModel) -> PooledDatabase:
        return PooledDatabase(
            id=model.id,
            name=model.name,
            created_at=model.created_at,
            assigned=model.assigned,
            tenant_id=TenantId(value=model.tenant_id) if model.tenant_id else None,
            assigned_at=model.assigned_at,
        )
