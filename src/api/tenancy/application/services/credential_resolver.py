"""Resolve a login credential to the tenant that owns it.

The caller only knows an email and a password. Resolution tries, in order:

1. the credential cache (no database access at all);
2. the lookup index candidates (each one verified inside its tenant);
3. a scan over every active tenant in id order.

"Email not found" and "wrong password" are indistinguishable to the caller.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.cache import CacheStore
from infrastructure.settings import TenancySettings
from tenancy.application.observability import (
    CredentialResolverProbe,
    DefaultCredentialResolverProbe,
)
from tenancy.application.security import (
    dummy_verify,
    fingerprint_password,
    verify_password,
)
from tenancy.application.services.context_switcher import TenantContextSwitcher
from tenancy.application.services.lookup_index import (
    CREDENTIAL_NAMESPACE,
    LookupIndexMaintainer,
)
from tenancy.application.value_objects import ResolvedCredential
from tenancy.domain.aggregates import Tenant
from tenancy.domain.value_objects import TenantId, normalize_email
from tenancy.ports.exceptions import InvalidCredentialsError, TenantUnavailableError
from tenancy.ports.repositories import ITenantDataRepositories, ITenantRepository


class CredentialResolver:
    """Application service answering "which tenant does this login belong to"."""

    def __init__(
        self,
        cache: CacheStore,
        lookup_index: LookupIndexMaintainer,
        tenant_repository: ITenantRepository,
        tenant_data: ITenantDataRepositories,
        switcher: TenantContextSwitcher,
        session: AsyncSession,
        settings: TenancySettings,
        probe: CredentialResolverProbe | None = None,
    ):
        self._cache = cache
        self._lookup_index = lookup_index
        self._tenants = tenant_repository
        self._tenant_data = tenant_data
        self._switcher = switcher
        self._session = session
        self._settings = settings
        self._probe = probe or DefaultCredentialResolverProbe()

    async def authenticate(self, email: str, password: str) -> ResolvedCredential:
        """Resolve or raise.

        Raises:
            InvalidCredentialsError: If no active tenant accepts the credential
        """
        resolved = await self.resolve(email, password)
        if resolved is None:
            raise InvalidCredentialsError()
        return resolved

    async def resolve(self, email: str, password: str) -> ResolvedCredential | None:
        """Find the tenant and user matching an email and password.

        No tenant is left active when this returns.

        Returns:
            The resolution, or None if no active tenant accepts the credential
        """
        email = normalize_email(email)
        cache_key = self._credential_key(email, password)

        cached = await self._cache.get_json(cache_key)
        if cached is not None:
            try:
                resolved = ResolvedCredential.from_cache(cached)
            except KeyError:
                await self._cache.delete(cache_key)
            else:
                self._probe.resolved_from_cache(resolved.tenant_id)
                return resolved

        tried: set[TenantId] = set()
        for tenant_id in await self._lookup_index.candidate_tenants(email):
            tried.add(tenant_id)
            async with self._session.begin():
                tenant = await self._tenants.get_by_id(tenant_id)
            if tenant is None or not tenant.is_active:
                continue

            resolved = await self._try_tenant(tenant, email, password)
            if resolved is not None:
                await self._remember(resolved, tenant, cache_key, source="index")
                return resolved
            self._probe.index_hint_rejected(email, tenant_id.value)

        async with self._session.begin():
            remaining = [
                tenant
                for tenant in await self._tenants.list_all(active_only=True)
                if tenant.id not in tried
            ]
        self._probe.fallback_scan_started(email, len(remaining))

        for tenant in remaining:
            resolved = await self._try_tenant(tenant, email, password)
            if resolved is not None:
                await self._remember(resolved, tenant, cache_key, source="scan")
                return resolved

        self._probe.resolution_failed(email)
        return None

    async def _try_tenant(
        self, tenant: Tenant, email: str, password: str
    ) -> ResolvedCredential | None:
        """Check the credential inside one tenant.

        Tenants that cannot be activated or queried are skipped, not raised.
        """
        try:
            async with self._switcher.tenant_scope(tenant) as active:
                async with active.session() as tenant_session:
                    user = await self._tenant_data.users(tenant_session).get_by_email(
                        email
                    )
        except (TenantUnavailableError, SQLAlchemyError) as e:
            self._probe.tenant_skipped(tenant.id.value, str(e))
            return None

        if user is None:
            dummy_verify(password)
            return None
        if not verify_password(password, user.password_hash):
            return None
        if not user.is_active:
            return None

        return ResolvedCredential(
            tenant_id=tenant.id.value,
            user_id=user.id.value,
            email=user.email,
            name=user.name,
            company_id=user.active_company_id.value if user.active_company_id else None,
        )

    async def _remember(
        self, resolved: ResolvedCredential, tenant: Tenant, cache_key: str, source: str
    ) -> None:
        await self._lookup_index.record_email_tenant(resolved.email, tenant.id)
        await self._cache.set_json(
            cache_key, resolved.to_cache(), self._settings.credential_cache_ttl
        )
        self._probe.resolved(tenant.id.value, source)

    def _credential_key(self, email: str, password: str) -> str:
        fingerprint = fingerprint_password(
            password, email, self._settings.fingerprint_salt.get_secret_value()
        )
        return self._cache.key(CREDENTIAL_NAMESPACE, email, fingerprint)
