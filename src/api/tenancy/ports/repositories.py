"""Repository protocols (ports) for the tenancy bounded context.

Central registry repositories are bound to a session on the central
database. Tenant repositories are bound to a session obtained from an
activated tenant context and never see the central registry.
"""

from __future__ import annotations

from typing import Collection, Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain.aggregates import (
    Company,
    CompanyTenantMapping,
    PooledDatabase,
    Tenant,
    TenantUser,
    UserLookup,
)
from tenancy.domain.value_objects import CompanyId, TenantId, UserStatus


@runtime_checkable
class ITenantRepository(Protocol):
    """Repository for Tenant aggregates in the central registry."""

    async def save(self, tenant: Tenant) -> None:
        """Persist a tenant (insert or update).

        Raises:
            DuplicateTenantError: If another tenant already has the tax id
        """
        ...

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Retrieve a tenant by id, or None if not registered."""
        ...

    async def get_by_tax_id(self, tax_id: str) -> Tenant | None:
        """Retrieve a tenant by tax id, or None if not registered."""
        ...

    async def list_all(self, active_only: bool = False) -> list[Tenant]:
        """List tenants ordered by id.

        The id order is stable, which makes credential fallback scans and
        batch commands deterministic.
        """
        ...


@runtime_checkable
class IPooledDatabaseRepository(Protocol):
    """Repository for warm pool entries."""

    async def add(self, entry: PooledDatabase) -> None:
        """Register a newly provisioned, migrated, unassigned database."""
        ...

    async def count_available(self) -> int:
        """Count entries not yet assigned to a tenant."""
        ...

    async def next_free(self, skip: Collection[str] = ()) -> PooledDatabase | None:
        """Return the oldest free entry whose id is not in ``skip``."""
        ...

    async def mark_assigned(self, entry_id: str, tenant_id: TenantId) -> bool:
        """Atomically assign a free entry to a tenant.

        Implemented as one conditional UPDATE guarded by ``assigned = false``
        so that exactly one concurrent claimer wins.

        Returns:
            True if this call assigned the entry, False if it was already taken
        """
        ...

    async def release(self, name: str) -> bool:
        """Return an assigned entry to the free pool.

        Returns:
            True if an assigned entry with this name was released
        """
        ...

    async def list_all(self, assigned: bool | None = None) -> list[PooledDatabase]:
        """List entries, optionally filtered by assignment state."""
        ...


@runtime_checkable
class ICompanyMappingRepository(Protocol):
    """Repository for durable company to tenant mappings."""

    async def upsert(self, mapping: CompanyTenantMapping, overwrite: bool = True) -> bool:
        """Insert or refresh a mapping keyed by company id.

        Args:
            mapping: The mapping to store
            overwrite: Replace the tenant of an existing mapping when True;
                leave existing mappings untouched when False

        Returns:
            True if a row was inserted or changed
        """
        ...

    async def get_tenant_for_company(self, company_id: CompanyId) -> TenantId | None:
        """Return the tenant hosting a company, or None if unmapped."""
        ...

    async def exists(self, company_id: CompanyId) -> bool:
        """Return True if the company has a mapping."""
        ...

    async def list_for_tenant(self, tenant_id: TenantId) -> list[CompanyTenantMapping]:
        """List every mapping pointing at a tenant."""
        ...


@runtime_checkable
class IUserLookupRepository(Protocol):
    """Repository for durable email to tenant user lookup rows."""

    async def upsert(self, entry: UserLookup, overwrite: bool = True) -> bool:
        """Insert or refresh the row keyed by (email, tenant_id).

        Returns:
            True if a row was inserted or changed
        """
        ...

    async def exists(self, email: str, tenant_id: TenantId) -> bool:
        """Return True if a row exists for (email, tenant_id)."""
        ...

    async def tenants_for_email(self, email: str) -> list[TenantId]:
        """List tenants with an active lookup row for an email, ordered by tenant id."""
        ...

    async def emails_for_tenant(self, tenant_id: TenantId) -> list[str]:
        """List every email with a lookup row in a tenant, whatever its status."""
        ...

    async def set_status(
        self, email: str, tenant_id: TenantId, status: UserStatus
    ) -> bool:
        """Change the status of a row.

        Returns:
            True if a row was updated
        """
        ...


@runtime_checkable
class ITenantUserRepository(Protocol):
    """Repository for users stored inside the active tenant database."""

    async def get_by_email(self, email: str) -> TenantUser | None:
        """Retrieve a user by normalized email, or None."""
        ...

    async def save(self, user: TenantUser) -> None:
        """Persist a user and its company memberships."""
        ...

    async def list_all(self) -> list[TenantUser]:
        """List every user of the tenant."""
        ...


@runtime_checkable
class ICompanyRepository(Protocol):
    """Repository for companies stored inside the active tenant database."""

    async def save(self, company: Company) -> None:
        """Persist a company."""
        ...

    async def get_by_id(self, company_id: CompanyId) -> Company | None:
        """Retrieve a company by id, or None."""
        ...

    async def list_all(self, include_inactive: bool = False) -> list[Company]:
        """List companies of the tenant ordered by id."""
        ...


@runtime_checkable
class ITenantDataRepositories(Protocol):
    """Builds repositories over a session of an activated tenant database."""

    def companies(self, session: AsyncSession) -> ICompanyRepository:
        ...

    def users(self, session: AsyncSession) -> ITenantUserRepository:
        ...
