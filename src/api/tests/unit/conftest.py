"""Unit test fixtures with mocked dependencies."""

import fnmatch
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.cache import CacheStore
from infrastructure.observability import CacheProbe
from infrastructure.settings import TenancySettings
from tenancy.application.services.context_switcher import TenantContextSwitcher
from tenancy.domain.aggregates import CompanyTenantMapping, Tenant, UserLookup
from tenancy.domain.value_objects import CompanyId, TenantId, normalize_email


def make_mock_session() -> Mock:
    """Mock AsyncSession whose begin() is an async context manager."""
    session = Mock(spec=AsyncSession)

    ctx_manager = AsyncMock()
    ctx_manager.__aenter__ = AsyncMock(return_value=None)
    ctx_manager.__aexit__ = AsyncMock(return_value=None)

    session.begin = Mock(return_value=ctx_manager)
    return session


@pytest.fixture
def mock_session():
    """Mock central registry AsyncSession."""
    return make_mock_session()


@pytest.fixture
def tenancy_settings(tmp_path: Path) -> TenancySettings:
    """Tenancy settings pointing at an empty scripts root."""
    return TenancySettings(
        create_databases=True,
        database_prefix="tenant_",
        pool_prefix="tenant_pool_",
        pool_floor=5,
        pool_max_size=20,
        migrations_path=tmp_path,
        email_index_ttl=600,
        credential_cache_ttl=120,
        fingerprint_salt="test-salt",
        claim_attempts=3,
    )


@pytest.fixture
def make_tenant():
    """Factory for active tenants with derived database names."""

    def _make(name: str = "Acme Ltda", tax_id: str = "12345678000190") -> Tenant:
        return Tenant.create(name=name, tax_id=tax_id, database_prefix="tenant_")

    return _make


@pytest.fixture
def tenant_sessions():
    """Tenant-side sessions handed out by the fake switcher, keyed by tenant id."""
    return {}


@pytest.fixture
def mock_switcher(tenant_sessions):
    """TenantContextSwitcher double whose scopes yield mock tenant sessions.

    ``activated`` records the tenants entered, in order.
    """
    switcher = Mock(spec=TenantContextSwitcher)
    switcher.activated = []

    @asynccontextmanager
    async def tenant_scope(tenant):
        switcher.activated.append(tenant.id)
        session = tenant_sessions.setdefault(tenant.id, make_mock_session())
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=None)
        active = Mock()
        active.tenant = tenant
        active.engine = Mock(name=f"engine:{tenant.database_name}")
        active.tenant_id = tenant.id
        active.session = Mock(return_value=session)
        yield active

    switcher.tenant_scope = Mock(side_effect=tenant_scope)
    return switcher


class FakeRedis:
    """Dict-backed stand-in for the async Redis commands CacheStore uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match="*", count=None):
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self):
        return True


class InMemoryCompanyMappingRepository:
    def __init__(self):
        self.rows: dict[CompanyId, CompanyTenantMapping] = {}

    async def upsert(self, mapping, overwrite=True):
        existing = self.rows.get(mapping.company_id)
        if existing is not None and (not overwrite or existing == mapping):
            return False
        self.rows[mapping.company_id] = mapping
        return True

    async def get_tenant_for_company(self, company_id):
        mapping = self.rows.get(company_id)
        return mapping.tenant_id if mapping else None

    async def exists(self, company_id):
        return company_id in self.rows

    async def list_for_tenant(self, tenant_id):
        return [m for m in self.rows.values() if m.tenant_id == tenant_id]


class InMemoryUserLookupRepository:
    def __init__(self):
        self.rows: dict[tuple[str, TenantId], UserLookup] = {}

    async def upsert(self, entry, overwrite=True):
        key = (normalize_email(entry.email), entry.tenant_id)
        existing = self.rows.get(key)
        if existing is not None and (not overwrite or existing == entry):
            return False
        self.rows[key] = entry
        return True

    async def exists(self, email, tenant_id):
        return (normalize_email(email), tenant_id) in self.rows

    async def tenants_for_email(self, email):
        email = normalize_email(email)
        return sorted(
            (
                tenant_id
                for (row_email, tenant_id), row in self.rows.items()
                if row_email == email and row.is_active
            ),
            key=lambda tenant_id: tenant_id.value,
        )

    async def emails_for_tenant(self, tenant_id):
        return sorted(email for email, row_tenant in self.rows if row_tenant == tenant_id)

    async def set_status(self, email, tenant_id, status):
        key = (normalize_email(email), tenant_id)
        row = self.rows.get(key)
        if row is None:
            return False
        self.rows[key] = replace(row, status=status)
        return True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    """Real CacheStore over the in-memory Redis double."""
    return CacheStore(fake_redis, key_prefix="tessera", probe=Mock(spec=CacheProbe))


@pytest.fixture
def mapping_repository():
    return InMemoryCompanyMappingRepository()


@pytest.fixture
def user_lookup_repository():
    return InMemoryUserLookupRepository()
