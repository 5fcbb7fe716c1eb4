"""PostgreSQL implementation of IUserLookupRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain.aggregates import UserLookup
from tenancy.domain.value_objects import TenantId, UserStatus, normalize_email
from tenancy.infrastructure.models import UserLookupModel
from tenancy.ports.repositories import IUserLookupRepository


class UserLookupRepository(IUserLookupRepository):
    """Email to tenant lookup rows keyed by (email, tenant_id)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, entry: UserLookup, overwrite: bool = True) -> bool:
        email = normalize_email(entry.email)
        values = {
            "user_id": entry.user_id.value,
            "company_id": entry.company_id.value if entry.company_id else None,
            "tax_id": entry.tax_id,
            "status": entry.status.value,
        }

        model = await self._session.get(UserLookupModel, (email, entry.tenant_id.value))
        if model is None:
            self._session.add(
                UserLookupModel(email=email, tenant_id=entry.tenant_id.value, **values)
            )
            await self._session.flush()
            return True

        if not overwrite:
            return False

        changed = False
        for key, value in values.items():
            if getattr(model, key) != value:
                setattr(model, key, value)
                changed = True
        if changed:
            await self._session.flush()
        return changed

    async def exists(self, email: str, tenant_id: TenantId) -> bool:
        model = await self._session.get(
            UserLookupModel, (normalize_email(email), tenant_id.value)
        )
        return model is not None

    async def tenants_for_email(self, email: str) -> list[TenantId]:
        stmt = (
            select(UserLookupModel.tenant_id)
            .where(
                UserLookupModel.email == normalize_email(email),
                UserLookupModel.status == UserStatus.ACTIVE.value,
            )
            .order_by(UserLookupModel.tenant_id)
        )
        result = await self._session.execute(stmt)
        return [TenantId(value=tenant_id) for tenant_id in result.scalars().all()]

    async def emails_for_tenant(self, tenant_id: TenantId) -> list[str]:
        stmt = (
            select(UserLookupModel.email)
            .where(UserLookupModel.tenant_id == tenant_id.value)
            .order_by(UserLookupModel.email)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def set_status(
        self, email: str, tenant_id: TenantId, status: UserStatus
    ) -> bool:
        model = await self._session.get(
            UserLookupModel, (normalize_email(email), tenant_id.value)
        )
        if model is None or model.status == status.value:
            return False
        model.status = status.value
        await self._session.flush()
        return True
