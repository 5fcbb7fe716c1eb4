"""Companies stored inside a tenant database."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain.aggregates import Company
from tenancy.domain.value_objects import CompanyId, CompanyStatus
from tenancy.infrastructure.models import CompanyModel
from tenancy.ports.repositories import ICompanyRepository


class CompanyRepository(ICompanyRepository):
    """Repository for the companies table of one tenant."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, company: Company) -> None:
        model = await self._session.get(CompanyModel, company.id.value)
        if model is None:
            model = CompanyModel(id=company.id.value)
            self._session.add(model)

        model.legal_name = company.legal_name
        model.tax_id = company.tax_id
        model.status = company.status.value
        await self._session.flush()

    async def get_by_id(self, company_id: CompanyId) -> Company | None:
        model = await self._session.get(CompanyModel, company_id.value)
        return self._to_domain(model) if model else None

    async def list_all(self, include_inactive: bool = False) -> list[Company]:
        stmt = select(CompanyModel).order_by(CompanyModel.id)
        if not include_inactive:
            stmt = stmt.where(CompanyModel.status == CompanyStatus.ACTIVE.value)
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @staticmethod
    def _to_domain(model: CompanyModel) -> Company:
        return Company(
            id=CompanyId(value=model.id),
            legal_name=model.legal_name,
            tax_id=model.tax_id,
            status=CompanyStatus(model.status),
        )
