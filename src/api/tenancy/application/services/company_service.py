"""Company write paths inside a tenant database."""

from __future__ import annotations

from tenancy.application.observability import (
    DefaultTenantProvisioningProbe,
    TenantProvisioningProbe,
)
from tenancy.application.services.context_switcher import TenantContextSwitcher
from tenancy.application.services.lookup_index import LookupIndexMaintainer
from tenancy.domain.aggregates import Company, Tenant
from tenancy.domain.value_objects import CompanyId
from tenancy.ports.exceptions import CompanyNotFoundError
from tenancy.ports.repositories import ITenantDataRepositories


class CompanyService:
    """Creates and deactivates companies, keeping the routing index current."""

    def __init__(
        self,
        switcher: TenantContextSwitcher,
        tenant_data: ITenantDataRepositories,
        lookup_index: LookupIndexMaintainer,
        probe: TenantProvisioningProbe | None = None,
    ):
        self._switcher = switcher
        self._tenant_data = tenant_data
        self._lookup_index = lookup_index
        self._probe = probe or DefaultTenantProvisioningProbe()

    async def create_company(self, tenant: Tenant, legal_name: str, tax_id: str) -> Company:
        """Create a company in the tenant and map it to the tenant.

        The mapping is written after the company commits; a crash in between
        leaves a company that ``bulk_repopulate`` maps later.
        """
        company = Company.create(legal_name=legal_name, tax_id=tax_id)
        async with self._switcher.tenant_scope(tenant) as active:
            async with active.session() as session, session.begin():
                await self._tenant_data.companies(session).save(company)

        await self._lookup_index.record_company_mapping(tenant.id, company.id)
        self._probe.company_created(tenant.id.value, company.id.value)
        return company

    async def deactivate_company(self, tenant: Tenant, company_id: CompanyId) -> Company:
        """Soft-delete a company and drop everything cached for it.

        Raises:
            CompanyNotFoundError: If the company does not exist in the tenant
        """
        async with self._switcher.tenant_scope(tenant) as active:
            async with active.session() as session, session.begin():
                companies = self._tenant_data.companies(session)
                company = await companies.get_by_id(company_id)
                if company is None:
                    raise CompanyNotFoundError(f"Company {company_id} not found")
                company.deactivate()
                await companies.save(company)

        await self._lookup_index.invalidate_company_cache(company_id)
        return company
