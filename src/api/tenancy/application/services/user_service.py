"""Tenant user write paths.

Every change that could make a cached resolution wrong (deactivation, a
new password, a company switch) drops the email's cache entries before
returning.
"""

from __future__ import annotations

from tenancy.application.observability import (
    DefaultTenantProvisioningProbe,
    TenantProvisioningProbe,
)
from tenancy.application.security import hash_password
from tenancy.application.services.context_switcher import TenantContextSwitcher
from tenancy.application.services.lookup_index import LookupIndexMaintainer
from tenancy.domain.aggregates import Tenant, TenantUser
from tenancy.domain.value_objects import CompanyId
from tenancy.ports.exceptions import CompanyNotFoundError, TenantUserNotFoundError
from tenancy.ports.repositories import ITenantDataRepositories


class TenantUserService:
    """Manages users of a tenant and their routing entries."""

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

    async def create_user(
        self,
        tenant: Tenant,
        email: str,
        name: str,
        password: str,
        company_id: CompanyId | None = None,
    ) -> TenantUser:
        """Create a user and register the email in the lookup index.

        Raises:
            CompanyNotFoundError: If ``company_id`` does not exist in the tenant
            ValueError: If the password is too long to hash
        """
        user = TenantUser.create(
            email=email,
            name=name,
            password_hash=hash_password(password),
            company_id=company_id,
        )
        async with self._switcher.tenant_scope(tenant) as active:
            async with active.session() as session, session.begin():
                if company_id is not None:
                    company = await self._tenant_data.companies(session).get_by_id(
                        company_id
                    )
                    if company is None:
                        raise CompanyNotFoundError(f"Company {company_id} not found")
                await self._tenant_data.users(session).save(user)

        await self._lookup_index.record_user_lookup(tenant.id, user, tenant.tax_id)
        self._probe.user_created(tenant.id.value, user.id.value)
        return user

    async def deactivate_user(self, tenant: Tenant, email: str) -> TenantUser:
        """Deactivate a user. Its lookup row and cached resolutions go with it."""
        user = await self._update(tenant, email, lambda user: user.deactivate())
        await self._lookup_index.deactivate_user_lookup(user.email, tenant.id)
        return user

    async def change_password(self, tenant: Tenant, email: str, password: str) -> TenantUser:
        password_hash = hash_password(password)

        def apply(user: TenantUser) -> None:
            user.password_hash = password_hash

        user = await self._update(tenant, email, apply)
        await self._lookup_index.forget_email(user.email)
        return user

    async def switch_company(
        self, tenant: Tenant, email: str, company_id: CompanyId
    ) -> TenantUser:
        """Change the company a user acts for.

        Raises:
            TenantUserNotFoundError: If the user does not exist
            CompanyAccessDeniedError: If the user is not a member of the company
        """
        previous: list[CompanyId | None] = []

        def apply(user: TenantUser) -> None:
            previous.append(user.active_company_id)
            user.switch_company(company_id)

        user = await self._update(tenant, email, apply)
        await self._lookup_index.forget_email(user.email)
        if previous[0] is not None and previous[0] != company_id:
            await self._lookup_index.invalidate_company_cache(previous[0])
        await self._lookup_index.invalidate_company_cache(company_id)
        await self._lookup_index.record_user_lookup(tenant.id, user, tenant.tax_id)
        self._probe.company_switched(tenant.id.value, user.id.value, company_id.value)
        return user

    async def _update(self, tenant: Tenant, email: str, change) -> TenantUser:
        async with self._switcher.tenant_scope(tenant) as active:
            async with active.session() as session, session.begin():
                users = self._tenant_data.users(session)
                user = await users.get_by_email(email)
                if user is None:
                    raise TenantUserNotFoundError(f"User {email} not found")
                change(user)
                await users.save(user)
        return user
