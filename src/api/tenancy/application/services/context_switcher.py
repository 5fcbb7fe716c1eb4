"""Tenant context switching.

The active tenant is held in a ``ContextVar``, so each asyncio task (one
per request, one per batch iteration) has its own state and nothing leaks
across concurrent requests. Within a unit of work at most one tenant is
active at a time.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.database.registry import TenantEngineRegistry
from infrastructure.database.scope import bind_company_scope
from infrastructure.database.server import DatabaseServer
from tenancy.application.observability import (
    ContextSwitcherProbe,
    DefaultContextSwitcherProbe,
)
from tenancy.domain.aggregates import Tenant
from tenancy.domain.value_objects import TenantId
from tenancy.ports.exceptions import (
    TenantContextConflictError,
    TenantUnavailableError,
)

T = TypeVar("T")


@dataclass(frozen=True)
class ActiveTenant:
    """An activated tenant and the engine bound to its database."""

    tenant: Tenant
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]

    @property
    def tenant_id(self) -> TenantId:
        return self.tenant.id

    def session(self, company_id: str | None = None) -> AsyncSession:
        """Open a session on the tenant database.

        Args:
            company_id: When given, every company-scoped SELECT issued through
                the session is restricted to this company
        """
        session = self.sessionmaker()
        if company_id is not None:
            bind_company_scope(session, company_id)
        return session


_active_tenant: ContextVar[ActiveTenant | None] = ContextVar(
    "tessera_active_tenant", default=None
)


class TenantContextSwitcher:
    """Activates and deactivates the tenant a unit of work operates as.

    States are Inactive and Active(tenant). Activating the active tenant
    again is a no-op; activating a different one raises instead of
    switching.
    """

    def __init__(
        self,
        server: DatabaseServer,
        engines: TenantEngineRegistry,
        probe: ContextSwitcherProbe | None = None,
    ) -> None:
        self._server = server
        self._engines = engines
        self._probe = probe or DefaultContextSwitcherProbe()

    def current(self) -> ActiveTenant | None:
        return _active_tenant.get()

    async def activate(self, tenant: Tenant) -> ActiveTenant:
        """Make ``tenant`` the active context.

        Raises:
            TenantContextConflictError: If a different tenant is already active
            TenantUnavailableError: If the tenant database does not exist or
                the server cannot be reached
        """
        active = _active_tenant.get()
        if active is not None:
            if active.tenant_id == tenant.id:
                return active
            self._probe.context_conflict(active.tenant_id.value, tenant.id.value)
            raise TenantContextConflictError(active.tenant_id.value, tenant.id.value)

        try:
            exists = await self._server.database_exists(tenant.database_name)
        except DatabaseConnectionError as e:
            self._probe.tenant_unavailable(tenant.id.value, tenant.database_name, str(e))
            raise TenantUnavailableError(tenant.id.value, str(e)) from e

        if not exists:
            self._probe.tenant_unavailable(
                tenant.id.value, tenant.database_name, "database does not exist"
            )
            raise TenantUnavailableError(tenant.id.value)

        active = ActiveTenant(
            tenant=tenant,
            engine=self._engines.get_engine(tenant.database_name),
            sessionmaker=self._engines.get_sessionmaker(tenant.database_name),
        )
        _active_tenant.set(active)
        self._probe.tenant_activated(tenant.id.value, tenant.database_name)
        return active

    def deactivate(self) -> None:
        """Clear the active tenant. Safe to call when none is active."""
        active = _active_tenant.get()
        if active is None:
            return
        _active_tenant.set(None)
        self._probe.tenant_deactivated(active.tenant_id.value)

    @asynccontextmanager
    async def tenant_scope(self, tenant: Tenant) -> AsyncIterator[ActiveTenant]:
        """Activate ``tenant`` for the block and deactivate on every exit path.

        If the same tenant was already active the block reuses it and leaves
        it active afterwards.
        """
        already_active = self.current()
        active = await self.activate(tenant)
        try:
            yield active
        finally:
            if already_active is None:
                self.deactivate()

    async def with_tenant(
        self, tenant: Tenant, fn: Callable[[ActiveTenant], Awaitable[T]]
    ) -> T:
        """Run ``fn`` as ``tenant`` and return its result."""
        async with self.tenant_scope(tenant) as active:
            return await fn(active)
