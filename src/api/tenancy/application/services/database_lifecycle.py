"""Database lifecycle manager.

Creates tenant databases and brings them to the current schema by
applying the ordered SQL script groups. Also serves the warm pool, whose
databases are created and migrated before any tenant owns them.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.exceptions import DatabaseError
from infrastructure.database.registry import TenantEngineRegistry
from infrastructure.database.server import DatabaseServer
from infrastructure.settings import TenancySettings
from tenancy.application.observability import (
    DatabaseLifecycleProbe,
    DefaultDatabaseLifecycleProbe,
)
from tenancy.application.services.context_switcher import TenantContextSwitcher
from tenancy.application.services.migration_paths import MigrationPathResolver
from tenancy.application.value_objects import BatchSummary
from tenancy.domain.aggregates import Tenant
from tenancy.domain.value_objects import MigrationReport, TenantId
from tenancy.ports.exceptions import TenantNotFoundError, TenantUnavailableError
from tenancy.ports.protocols import MigrationRunnerProtocol
from tenancy.ports.repositories import ITenantRepository


class DatabaseLifecycleManager:
    """Application service for creating and migrating tenant databases.

    When ``create_databases`` is disabled (single-database deployments) the
    tenant-level operations are logged no-ops unless forced.
    """

    def __init__(
        self,
        server: DatabaseServer,
        engines: TenantEngineRegistry,
        switcher: TenantContextSwitcher,
        runner: MigrationRunnerProtocol,
        resolver: MigrationPathResolver,
        tenant_repository: ITenantRepository,
        session: AsyncSession,
        settings: TenancySettings,
        probe: DatabaseLifecycleProbe | None = None,
    ):
        """Initialize DatabaseLifecycleManager with dependencies.

        Args:
            server: Server-level database administration
            engines: Registry of per-database engines
            switcher: Tenant context switcher used while migrating a tenant
            runner: Applies script groups and maintains the ledger
            resolver: Orders script groups
            tenant_repository: Central registry, for batch runs
            session: Central registry session for transaction management
            settings: Tenancy settings
            probe: Optional domain probe for observability
        """
        self._server = server
        self._engines = engines
        self._switcher = switcher
        self._runner = runner
        self._resolver = resolver
        self._tenant_repository = tenant_repository
        self._session = session
        self._settings = settings
        self._probe = probe or DefaultDatabaseLifecycleProbe()

    async def create_database(self, tenant: Tenant, force_create: bool = False) -> bool:
        """Create the tenant's database if it does not exist yet.

        Returns:
            True if a database was created, False if it existed or creation
            is disabled

        Raises:
            DatabaseCreationError: If the server rejects the creation
        """
        if not self._settings.create_databases and not force_create:
            self._probe.database_creation_skipped(tenant.id.value)
            return False
        return await self.ensure_database(tenant.database_name)

    async def apply_migrations(
        self, tenant: Tenant, force_create: bool = False
    ) -> MigrationReport | None:
        """Apply pending scripts to the tenant's database.

        Runs inside the tenant's activated context, never against the
        central database.

        Returns:
            The report, or None when per-tenant databases are disabled

        Raises:
            TenantUnavailableError: If the tenant database does not exist
            MigrationError: If a script fails
        """
        if not self._settings.create_databases and not force_create:
            self._probe.database_creation_skipped(tenant.id.value)
            return None

        plan = self._resolver.plan(self._settings.migrations_path)
        async with self._switcher.tenant_scope(tenant) as active:
            report = await self._runner.apply(active.engine, tenant.database_name, plan)

        self._report(report)
        return report

    async def ensure_database(self, name: str) -> bool:
        """Create a database by name unless it exists."""
        created = await self._server.create_database(name)
        self._probe.database_ready(name, created)
        return created

    async def migrate_database(self, name: str) -> MigrationReport:
        """Apply pending scripts to a database that belongs to no tenant yet.

        The engine is disposed afterwards; pooled databases sit idle until
        claimed, and a rename requires that nobody is connected.
        """
        plan = self._resolver.plan(self._settings.migrations_path)
        try:
            report = await self._runner.apply(self._engines.get_engine(name), name, plan)
        finally:
            await self._engines.dispose(name)

        self._report(report)
        return report

    async def apply_migrations_to_all(
        self, tenant_id: TenantId | None = None
    ) -> BatchSummary:
        """Create missing databases and migrate every tenant (or one).

        A failing tenant is recorded in the summary and the batch continues.

        Raises:
            TenantNotFoundError: If ``tenant_id`` is not registered
        """
        async with self._session.begin():
            if tenant_id is not None:
                tenant = await self._tenant_repository.get_by_id(tenant_id)
                if tenant is None:
                    raise TenantNotFoundError(f"Tenant {tenant_id} not found")
                tenants = [tenant]
            else:
                tenants = await self._tenant_repository.list_all()

        summary = BatchSummary()
        for tenant in tenants:
            try:
                await self.create_database(tenant)
                await self.apply_migrations(tenant)
            except (
                DatabaseError,
                SQLAlchemyError,
                OSError,
                TenantUnavailableError,
            ) as e:
                self._probe.tenant_migration_failed(tenant.id.value, e)
                summary.record_failure(tenant.id.value, e)
            else:
                summary.record_success(tenant.id.value)

        self._probe.batch_completed(summary.processed, summary.succeeded, summary.failed)
        return summary

    def _report(self, report: MigrationReport) -> None:
        if report.nothing_to_migrate:
            self._probe.nothing_to_migrate(report.database_name)
        else:
            self._probe.migrations_applied(report.database_name, len(report.applied))
