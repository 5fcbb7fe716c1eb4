"""Procurement processes, the reference company-scoped table."""

from __future__ import annotations

from sqlalchemy import select

from tenancy.infrastructure.isolation import CompanyScopedRepository
from tenancy.infrastructure.models import ProcessModel


class ProcessRepository(CompanyScopedRepository[ProcessModel]):
    """Processes of one company inside a tenant database."""

    model = ProcessModel

    async def find_by_number(self, number: str) -> ProcessModel | None:
        stmt = select(ProcessModel).where(ProcessModel.number == number)
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            self._verify(row, self.company_id)
        return row
