"""Factory for repositories living inside a tenant database."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.infrastructure.company_repository import CompanyRepository
from tenancy.infrastructure.process_repository import ProcessRepository
from tenancy.infrastructure.tenant_user_repository import TenantUserRepository
from tenancy.ports.repositories import ITenantDataRepositories


class TenantDataRepositories(ITenantDataRepositories):
    """Binds tenant-side repositories to a session from an active tenant."""

    def companies(self, session: AsyncSession) -> CompanyRepository:
        return CompanyRepository(session)

    def users(self, session: AsyncSession) -> TenantUserRepository:
        return TenantUserRepository(session)

    def processes(self, session: AsyncSession, company_id: str | None) -> ProcessRepository:
        """Company-scoped processes. Binds the session to ``company_id``.

        Raises:
            MissingCompanyScopeError: If ``company_id`` is empty
        """
        return ProcessRepository(session, company_id)
