"""Lookup indexes that route requests to a tenant without scanning.

Two kinds of entries are maintained:

- email hints, cached in Redis with a short TTL and never trusted for
  authentication on their own;
- durable rows in the central registry: company to tenant mappings and
  email to tenant user lookups.

Both are rebuildable at any time with ``bulk_repopulate``.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.cache import CacheStore
from infrastructure.settings import TenancySettings
from tenancy.application.observability import DefaultLookupIndexProbe, LookupIndexProbe
from tenancy.application.services.context_switcher import TenantContextSwitcher
from tenancy.application.value_objects import BackfillSummary
from tenancy.domain.aggregates import CompanyTenantMapping, Tenant, TenantUser, UserLookup
from tenancy.domain.value_objects import (
    CompanyId,
    TenantId,
    UserStatus,
    normalize_email,
)
from tenancy.ports.exceptions import TenantNotFoundError, TenantUnavailableError
from tenancy.ports.repositories import (
    ICompanyMappingRepository,
    ITenantDataRepositories,
    ITenantRepository,
    IUserLookupRepository,
)

EMAIL_TENANT_NAMESPACE = "email-tenant"
CREDENTIAL_NAMESPACE = "credential"
COMPANY_NAMESPACE = "company"


class LookupIndexMaintainer:
    """Application service maintaining the email and company indexes."""

    def __init__(
        self,
        cache: CacheStore,
        mapping_repository: ICompanyMappingRepository,
        user_lookup_repository: IUserLookupRepository,
        tenant_repository: ITenantRepository,
        tenant_data: ITenantDataRepositories,
        switcher: TenantContextSwitcher,
        session: AsyncSession,
        settings: TenancySettings,
        probe: LookupIndexProbe | None = None,
    ):
        self._cache = cache
        self._mappings = mapping_repository
        self._user_lookups = user_lookup_repository
        self._tenants = tenant_repository
        self._tenant_data = tenant_data
        self._switcher = switcher
        self._session = session
        self._settings = settings
        self._probe = probe or DefaultLookupIndexProbe()

    # Email hints (cache)

    def email_key(self, email: str) -> str:
        return self._cache.key(EMAIL_TENANT_NAMESPACE, normalize_email(email))

    async def record_email_tenant(
        self, email: str, tenant_id: TenantId, ttl: int | None = None
    ) -> bool:
        return await self._cache.set(
            self.email_key(email),
            tenant_id.value,
            ttl or self._settings.email_index_ttl,
        )

    async def lookup_email_tenant(self, email: str) -> TenantId | None:
        key = self.email_key(email)
        raw = await self._cache.get(key)
        if raw is None:
            return None
        try:
            return TenantId.from_string(raw)
        except ValueError:
            self._probe.stale_email_hint(normalize_email(email), raw)
            await self._cache.delete(key)
            return None

    async def forget_email(self, email: str) -> None:
        """Drop the email hint and every cached credential for the email."""
        email = normalize_email(email)
        await self._cache.delete(self.email_key(email))
        await self._cache.delete_pattern(
            self._cache.key(CREDENTIAL_NAMESPACE, email, "*")
        )

    async def forget_tenant(self, tenant_id: TenantId) -> int:
        """Drop cached resolutions for every email and company of a tenant.

        Returns:
            Number of emails whose cache entries were dropped
        """
        async with self._session.begin():
            emails = await self._user_lookups.emails_for_tenant(tenant_id)
            mappings = await self._mappings.list_for_tenant(tenant_id)

        for email in emails:
            await self.forget_email(email)
        for mapping in mappings:
            await self.invalidate_company_cache(mapping.company_id)
        return len(emails)

    async def candidate_tenants(self, email: str) -> list[TenantId]:
        """Tenants worth trying first for an email, hint first, no duplicates."""
        candidates: list[TenantId] = []
        hint = await self.lookup_email_tenant(email)
        if hint is not None:
            candidates.append(hint)

        async with self._session.begin():
            indexed = await self._user_lookups.tenants_for_email(email)
        for tenant_id in indexed:
            if tenant_id not in candidates:
                candidates.append(tenant_id)
        return candidates

    # Company mappings (durable)

    async def record_company_mapping(
        self, tenant_id: TenantId, company_id: CompanyId, force: bool = False
    ) -> bool:
        """Record which tenant hosts a company. Repeating it never duplicates.

        An existing mapping to another tenant is only replaced with ``force``.
        """
        async with self._session.begin():
            written = await self._mappings.upsert(
                CompanyTenantMapping(company_id=company_id, tenant_id=tenant_id),
                overwrite=force,
            )
        if written:
            await self.invalidate_company_cache(company_id)
            self._probe.company_mapping_recorded(company_id.value, tenant_id.value)
        return written

    async def lookup_tenant_for_company(self, company_id: CompanyId) -> TenantId | None:
        """Resolve a company to its tenant, reading through the cache."""
        key = self._cache.key(COMPANY_NAMESPACE, company_id.value, "tenant")
        cached = await self._cache.get(key)
        if cached is not None:
            try:
                return TenantId.from_string(cached)
            except ValueError:
                await self._cache.delete(key)

        async with self._session.begin():
            tenant_id = await self._mappings.get_tenant_for_company(company_id)
        if tenant_id is not None:
            await self._cache.set(key, tenant_id.value, self._settings.email_index_ttl)
        return tenant_id

    async def invalidate_company_cache(self, company_id: CompanyId) -> int:
        """Delete every cache entry tagged with a company."""
        deleted = await self._cache.delete_pattern(
            self._cache.key(COMPANY_NAMESPACE, company_id.value, "*")
        )
        self._probe.company_cache_invalidated(company_id.value, deleted)
        return deleted

    # User lookups (durable)

    async def record_user_lookup(
        self,
        tenant_id: TenantId,
        user: TenantUser,
        tax_id: str | None = None,
        force: bool = True,
    ) -> bool:
        async with self._session.begin():
            return await self._user_lookups.upsert(
                self._lookup_for(tenant_id, user, tax_id), overwrite=force
            )

    async def deactivate_user_lookup(self, email: str, tenant_id: TenantId) -> bool:
        async with self._session.begin():
            changed = await self._user_lookups.set_status(
                email, tenant_id, UserStatus.INACTIVE
            )
        await self.forget_email(email)
        if changed:
            self._probe.user_lookup_deactivated(normalize_email(email), tenant_id.value)
        return changed

    # Repopulation

    async def bulk_repopulate(
        self, tenant_id: TenantId | None = None, force: bool = False
    ) -> BackfillSummary:
        """Rebuild company mappings and user lookups from tenant databases.

        Existing entries are left alone unless ``force``. Safe to re-run at
        any time; a failing tenant is recorded and the run continues.

        Raises:
            TenantNotFoundError: If ``tenant_id`` is not registered
        """
        async with self._session.begin():
            if tenant_id is not None:
                tenant = await self._tenants.get_by_id(tenant_id)
                if tenant is None:
                    raise TenantNotFoundError(f"Tenant {tenant_id} not found")
                tenants = [tenant]
            else:
                tenants = await self._tenants.list_all()

        summary = BackfillSummary()
        for tenant in tenants:
            try:
                await self._repopulate_tenant(tenant, force, summary)
            except (TenantUnavailableError, SQLAlchemyError) as e:
                self._probe.backfill_tenant_failed(tenant.id.value, e)
                summary.record_failure(tenant.id.value, e)
            else:
                summary.record_success(tenant.id.value)

        self._probe.backfill_completed(
            summary.processed,
            summary.mappings_written,
            summary.users_written,
            summary.failed,
        )
        return summary

    async def _repopulate_tenant(
        self, tenant: Tenant, force: bool, summary: BackfillSummary
    ) -> None:
        async with self._switcher.tenant_scope(tenant) as active:
            async with active.session() as tenant_session:
                companies = await self._tenant_data.companies(tenant_session).list_all(
                    include_inactive=True
                )
                users = await self._tenant_data.users(tenant_session).list_all()

        async with self._session.begin():
            for company in companies:
                if not force and await self._mappings.exists(company.id):
                    summary.skipped += 1
                    continue
                mapping = CompanyTenantMapping(company_id=company.id, tenant_id=tenant.id)
                if await self._mappings.upsert(mapping, overwrite=force):
                    summary.mappings_written += 1

            for user in users:
                if not force and await self._user_lookups.exists(user.email, tenant.id):
                    summary.skipped += 1
                    continue
                entry = self._lookup_for(tenant.id, user, tenant.tax_id)
                if await self._user_lookups.upsert(entry, overwrite=force):
                    summary.users_written += 1

    @staticmethod
    def _lookup_for(
        tenant_id: TenantId, user: TenantUser, tax_id: str | None
    ) -> UserLookup:
        return UserLookup(
            email=normalize_email(user.email),
            tenant_id=tenant_id,
            user_id=user.id,
            company_id=user.active_company_id,
            tax_id=tax_id,
            status=user.status,
        )
