"""PostgreSQL implementation of ITenantRepository.

Stores the central registry of tenants. Tenants are never deleted, so the
repository offers no delete operation; deactivation is a status update.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain.aggregates import Tenant
from tenancy.domain.value_objects import TenantId, TenantStatus
from tenancy.infrastructure.models import TenantModel
from tenancy.infrastructure.observability import (
    DefaultTenantRepositoryProbe,
    TenantRepositoryProbe,
)
from tenancy.ports.exceptions import DuplicateTenantError
from tenancy.ports.repositories import ITenantRepository


class TenantRepository(ITenantRepository):
    """Repository managing the tenants table of the central registry."""

    def __init__(
        self,
        session: AsyncSession,
        probe: TenantRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with a central registry session.

        Args:
            session: AsyncSession bound to the central database
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultTenantRepositoryProbe()

    async def save(self, tenant: Tenant) -> None:
        """Insert or update a tenant.

        Raises:
            DuplicateTenantError: If the tax id belongs to another tenant
        """
        existing = await self.get_by_tax_id(tenant.tax_id)
        if existing and existing.id != tenant.id:
            self._probe.duplicate_tax_id(tenant.tax_id)
            raise DuplicateTenantError(
                f"A tenant with tax id '{tenant.tax_id}' already exists"
            )

        try:
            model = await self._session.get(TenantModel, tenant.id.value)
            if model is None:
                model = TenantModel(id=tenant.id.value)
                self._session.add(model)

            model.name = tenant.name
            model.tax_id = tenant.tax_id
            model.status = tenant.status.value
            model.email = tenant.email
            model.phone = tenant.phone
            model.database_name = tenant.database_name
            if tenant.created_at is not None and model.created_at is None:
                model.created_at = tenant.created_at

            # Flush to catch integrity errors inside the caller's transaction
            await self._session.flush()
            self._probe.tenant_saved(tenant.id.value)

        except IntegrityError as e:
            if "tax_id" in str(e):
                self._probe.duplicate_tax_id(tenant.tax_id)
                raise DuplicateTenantError(
                    f"A tenant with tax id '{tenant.tax_id}' already exists"
                ) from e
            raise

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        model = await self._session.get(TenantModel, tenant_id.value)
        return self._to_domain(model) if model else None

    async def get_by_tax_id(self, tax_id: str) -> Tenant | None:
        stmt = select(TenantModel).where(TenantModel.tax_id == tax_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_all(self, active_only: bool = False) -> list[Tenant]:
        stmt = select(TenantModel).order_by(TenantModel.id)
        if active_only:
            stmt = stmt.where(TenantModel.status == TenantStatus.ACTIVE.value)
        result = await self._session.execute(stmt)
        tenants = [self._to_domain(model) for model in result.scalars().all()]

        self._probe.tenants_listed(len(tenants))
        return tenants

    @staticmethod
    def _to_domain(model: TenantModel) -> Tenant:
        return Tenant(
            id=TenantId(value=model.id),
            name=model.name,
            tax_id=model.tax_id,
            database_name=model.database_name,
            status=TenantStatus(model.status),
            email=model.email,
            phone=model.phone,
            created_at=model.created_at,
        )
