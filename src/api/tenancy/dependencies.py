"""Dependency wiring for the tenancy bounded context.

The same composition serves FastAPI (through the ``get_*`` dependencies)
and the batch commands (through ``build_tenancy_services``), so both
paths run identical service graphs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.cache import CacheStore
from infrastructure.database.dependencies import (
    get_central_session,
    get_database_server,
    get_engine_registry,
)
from infrastructure.dependencies import get_cache_store
from infrastructure.settings import TenancySettings, get_tenancy_settings
from tenancy.application.services import (
    CompanyService,
    CredentialResolver,
    DatabaseLifecycleManager,
    DatabasePoolProvisioner,
    LookupIndexMaintainer,
    MigrationPathResolver,
    TenantContextSwitcher,
    TenantProvisioningService,
    TenantUserService,
)
from tenancy.infrastructure.company_mapping_repository import CompanyMappingRepository
from tenancy.infrastructure.migration_runner import MigrationRunner
from tenancy.infrastructure.pooled_database_repository import PooledDatabaseRepository
from tenancy.infrastructure.tenant_data import TenantDataRepositories
from tenancy.infrastructure.tenant_repository import TenantRepository
from tenancy.infrastructure.user_lookup_repository import UserLookupRepository


@dataclass(frozen=True)
class TenancyServices:
    """Every tenancy application service, sharing one central session."""

    switcher: TenantContextSwitcher
    lifecycle: DatabaseLifecycleManager
    pool: DatabasePoolProvisioner
    lookup_index: LookupIndexMaintainer
    resolver: CredentialResolver
    provisioning: TenantProvisioningService
    companies: CompanyService
    users: TenantUserService


def build_tenancy_services(
    session: AsyncSession,
    cache: CacheStore,
    settings: TenancySettings | None = None,
) -> TenancyServices:
    """Compose the tenancy services over a central registry session.

    Args:
        session: Central registry session; services manage its transactions
        cache: Advisory cache store
        settings: Tenancy settings (defaults to the environment)
    """
    settings = settings or get_tenancy_settings()
    server = get_database_server()
    engines = get_engine_registry()

    tenant_repository = TenantRepository(session=session)
    tenant_data = TenantDataRepositories()
    switcher = TenantContextSwitcher(server=server, engines=engines)

    lifecycle = DatabaseLifecycleManager(
        server=server,
        engines=engines,
        switcher=switcher,
        runner=MigrationRunner(),
        resolver=MigrationPathResolver(),
        tenant_repository=tenant_repository,
        session=session,
        settings=settings,
    )
    pool = DatabasePoolProvisioner(
        pool_repository=PooledDatabaseRepository(session=session),
        lifecycle=lifecycle,
        session=session,
        settings=settings,
    )
    lookup_index = LookupIndexMaintainer(
        cache=cache,
        mapping_repository=CompanyMappingRepository(session=session),
        user_lookup_repository=UserLookupRepository(session=session),
        tenant_repository=tenant_repository,
        tenant_data=tenant_data,
        switcher=switcher,
        session=session,
        settings=settings,
    )
    resolver = CredentialResolver(
        cache=cache,
        lookup_index=lookup_index,
        tenant_repository=tenant_repository,
        tenant_data=tenant_data,
        switcher=switcher,
        session=session,
        settings=settings,
    )
    provisioning = TenantProvisioningService(
        tenant_repository=tenant_repository,
        pool=pool,
        lifecycle=lifecycle,
        server=server,
        lookup_index=lookup_index,
        session=session,
        settings=settings,
    )

    return TenancyServices(
        switcher=switcher,
        lifecycle=lifecycle,
        pool=pool,
        lookup_index=lookup_index,
        resolver=resolver,
        provisioning=provisioning,
        companies=CompanyService(switcher, tenant_data, lookup_index),
        users=TenantUserService(switcher, tenant_data, lookup_index),
    )


def get_tenancy_services(
    session: Annotated[AsyncSession, Depends(get_central_session)],
    cache: Annotated[CacheStore, Depends(get_cache_store)],
) -> TenancyServices:
    """Get the tenancy service graph for one request."""
    return build_tenancy_services(session=session, cache=cache)


def get_credential_resolver(
    services: Annotated[TenancyServices, Depends(get_tenancy_services)],
) -> CredentialResolver:
    return services.resolver


def get_tenant_provisioning_service(
    services: Annotated[TenancyServices, Depends(get_tenancy_services)],
) -> TenantProvisioningService:
    return services.provisioning


def get_lookup_index(
    services: Annotated[TenancyServices, Depends(get_tenancy_services)],
) -> LookupIndexMaintainer:
    return services.lookup_index
