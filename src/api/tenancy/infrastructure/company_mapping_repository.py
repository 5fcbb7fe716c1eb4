"""PostgreSQL implementation of ICompanyMappingRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain.aggregates import CompanyTenantMapping
from tenancy.domain.value_objects import CompanyId, TenantId
from tenancy.infrastructure.models import CompanyTenantMappingModel
from tenancy.ports.repositories import ICompanyMappingRepository


class CompanyMappingRepository(ICompanyMappingRepository):
    """Durable company to tenant mappings, one row per company."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, mapping: CompanyTenantMapping, overwrite: bool = True) -> bool:
        model = await self._session.get(
            CompanyTenantMappingModel, mapping.company_id.value
        )
        if model is None:
            self._session.add(
                CompanyTenantMappingModel(
                    company_id=mapping.company_id.value,
                    tenant_id=mapping.tenant_id.value,
                )
            )
            await self._session.flush()
            return True

        if not overwrite or model.tenant_id == mapping.tenant_id.value:
            return False

        model.tenant_id = mapping.tenant_id.value
        await self._session.flush()
        return True

    async def get_tenant_for_company(self, company_id: CompanyId) -> TenantId | None:
        model = await self._session.get(CompanyTenantMappingModel, company_id.value)
        return TenantId(value=model.tenant_id) if model else None

    async def exists(self, company_id: CompanyId) -> bool:
        return await self.get_tenant_for_company(company_id) is not None

    async def list_for_tenant(self, tenant_id: TenantId) -> list[CompanyTenantMapping]:
        stmt = (
            select(CompanyTenantMappingModel)
            .where(CompanyTenantMappingModel.tenant_id == tenant_id.value)
            .order_by(CompanyTenantMappingModel.company_id)
        )
        result = await self._session.execute(stmt)
        return [
            CompanyTenantMapping(
                company_id=CompanyId(value=model.company_id),
                tenant_id=TenantId(value=model.tenant_id),
            )
            for model in result.scalars().all()
        ]
