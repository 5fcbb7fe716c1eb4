"""Tenant signup and deactivation.

A new tenant gets its database from the warm pool when one is free: the
claimed database is renamed to the tenant's name and caught up with any
scripts added since it was pooled. With an empty pool the database is
created and migrated on demand, synchronously, before signup returns.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.exceptions import DatabaseCreationError, DatabaseError
from infrastructure.database.server import DatabaseServer
from infrastructure.settings import TenancySettings
from tenancy.application.observability import (
    DefaultTenantProvisioningProbe,
    TenantProvisioningProbe,
)
from tenancy.application.services.database_lifecycle import DatabaseLifecycleManager
from tenancy.application.services.lookup_index import LookupIndexMaintainer
from tenancy.application.services.pool_provisioner import DatabasePoolProvisioner
from tenancy.domain.aggregates import PooledDatabase, Tenant
from tenancy.domain.value_objects import TenantId
from tenancy.ports.exceptions import DuplicateTenantError, TenantNotFoundError
from tenancy.ports.repositories import ITenantRepository

SOURCE_POOL = "pool"
SOURCE_ON_DEMAND = "on_demand"
SOURCE_SHARED = "shared"


class TenantProvisioningService:
    """Application service registering tenants and readying their databases."""

    def __init__(
        self,
        tenant_repository: ITenantRepository,
        pool: DatabasePoolProvisioner,
        lifecycle: DatabaseLifecycleManager,
        server: DatabaseServer,
        lookup_index: LookupIndexMaintainer,
        session: AsyncSession,
        settings: TenancySettings,
        probe: TenantProvisioningProbe | None = None,
    ):
        self._tenants = tenant_repository
        self._pool = pool
        self._lifecycle = lifecycle
        self._server = server
        self._lookup_index = lookup_index
        self._session = session
        self._settings = settings
        self._probe = probe or DefaultTenantProvisioningProbe()

    async def register_tenant(
        self,
        name: str,
        tax_id: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> Tenant:
        """Register a tenant with a ready, schema-current database.

        The registry row is written last, so a tenant is never visible
        without its database. If migrating or saving fails, the database is
        handed back: a claimed pool entry is renamed back and released, and a
        database created for this signup is dropped.

        Raises:
            DuplicateTenantError: If the tax id is already registered
            ProvisioningError: If the database cannot be created or migrated
        """
        async with self._session.begin():
            if await self._tenants.get_by_tax_id(tax_id) is not None:
                self._probe.duplicate_tenant(tax_id)
                raise DuplicateTenantError(f"Tenant with tax id {tax_id} already exists")

        tenant = Tenant.create(
            name=name,
            tax_id=tax_id,
            database_prefix=self._settings.database_prefix,
            email=email,
            phone=phone,
        )

        claimed: PooledDatabase | None = None
        created = False
        if not self._settings.create_databases:
            source = SOURCE_SHARED
        else:
            claimed = await self._adopt_pooled_database(tenant)
            if claimed is not None:
                source = SOURCE_POOL
            else:
                created = await self._lifecycle.create_database(tenant)
                if not created:
                    await self._require_empty(tenant.database_name)
                source = SOURCE_ON_DEMAND

        try:
            await self._lifecycle.apply_migrations(tenant)
            async with self._session.begin():
                await self._tenants.save(tenant)
        except Exception as e:
            self._probe.signup_rolled_back(tenant.id.value, tenant.database_name, e)
            await self._discard_database(tenant, claimed, created)
            raise

        self._probe.tenant_registered(tenant.id.value, tenant.database_name, source)
        return tenant

    async def deactivate_tenant(self, tenant_id: TenantId) -> Tenant:
        """Deactivate a tenant. Its database is kept; logins stop resolving.

        Raises:
            TenantNotFoundError: If the tenant is not registered
        """
        async with self._session.begin():
            tenant = await self._tenants.get_by_id(tenant_id)
            if tenant is None:
                raise TenantNotFoundError(f"Tenant {tenant_id} not found")
            tenant.deactivate()
            await self._tenants.save(tenant)

        forgotten = await self._lookup_index.forget_tenant(tenant.id)
        self._probe.tenant_deactivated(tenant.id.value, forgotten)
        return tenant

    async def _adopt_pooled_database(self, tenant: Tenant) -> PooledDatabase | None:
        entry = await self._pool.claim(tenant.id)
        if entry is None:
            return None

        try:
            await self._server.rename_database(entry.name, tenant.database_name)
        except DatabaseCreationError as e:
            self._probe.pool_entry_unusable(entry.name, e)
            await self._pool.release(entry.name)
            return None
        return entry

    async def _require_empty(self, database_name: str) -> None:
        """Refuse to adopt a pre-existing database that already holds tables."""
        tables = await self._server.list_tables(database_name)
        if tables:
            raise DatabaseCreationError(
                f"Database {database_name} already exists and contains "
                f"{len(tables)} tables",
                database_name=database_name,
            )

    async def _discard_database(
        self, tenant: Tenant, claimed: PooledDatabase | None, created: bool
    ) -> None:
        try:
            if claimed is not None:
                await self._server.rename_database(tenant.database_name, claimed.name)
                await self._pool.release(claimed.name)
            elif created:
                await self._server.drop_database(tenant.database_name)
        except (DatabaseError, SQLAlchemyError, OSError) as e:
            self._probe.orphaned_database(tenant.database_name, e)
