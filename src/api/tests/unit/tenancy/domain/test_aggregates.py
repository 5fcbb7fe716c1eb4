"""Unit tests for tenancy aggregates."""

import pytest

from tenancy.domain.aggregates import (
    Company,
    PooledDatabase,
    Tenant,
    TenantUser,
    database_name_for,
)
from tenancy.domain.exceptions import CompanyAccessDeniedError
from tenancy.domain.value_objects import (
    CompanyId,
    CompanyStatus,
    TenantId,
    TenantStatus,
    UserStatus,
)


class TestTenant:
    """Tests for the Tenant aggregate."""

    def test_create_derives_database_name_from_id(self):
        tenant = Tenant.create(
            name="Acme", tax_id="123", database_prefix="tenant_", email="OPS@Acme.com"
        )

        assert tenant.database_name == f"tenant_{tenant.id.value.lower()}"
        assert tenant.status == TenantStatus.ACTIVE
        assert tenant.email == "ops@acme.com"
        assert tenant.created_at is not None

    def test_database_name_is_a_safe_identifier(self):
        name = database_name_for(TenantId.generate(), "tenant_")

        assert name == name.lower()
        assert len(name) <= 63

    def test_deactivate(self):
        tenant = Tenant.create(name="Acme", tax_id="123", database_prefix="tenant_")

        tenant.deactivate()

        assert tenant.is_active is False


class TestPooledDatabase:
    def test_create_is_free_with_prefixed_name(self):
        entry = PooledDatabase.create("tenant_pool_")

        assert entry.name == f"tenant_pool_{entry.id.lower()}"
        assert entry.assigned is False
        assert entry.tenant_id is None


class TestCompany:
    def test_deactivate_is_soft(self):
        company = Company.create(legal_name="Acme Filial", tax_id="999")

        company.deactivate()

        assert company.status == CompanyStatus.INACTIVE
        assert company.is_active is False


class TestTenantUser:
    """Tests for the TenantUser entity."""

    def test_create_normalizes_email_and_joins_company(self):
        company_id = CompanyId.generate()

        user = TenantUser.create(
            email=" Ana@Acme.com", name="Ana", password_hash="h", company_id=company_id
        )

        assert user.email == "ana@acme.com"
        assert user.active_company_id == company_id
        assert user.company_ids == [company_id]
        assert user.status == UserStatus.ACTIVE

    def test_grant_company_is_idempotent(self):
        user = TenantUser.create(email="ana@acme.com", name="Ana", password_hash="h")
        company_id = CompanyId.generate()

        user.grant_company(company_id)
        user.grant_company(company_id)

        assert user.company_ids == [company_id]
        assert user.active_company_id == company_id

    def test_switch_company_requires_membership(self):
        first, second = CompanyId.generate(), CompanyId.generate()
        user = TenantUser.create(
            email="ana@acme.com", name="Ana", password_hash="h", company_id=first
        )

        with pytest.raises(CompanyAccessDeniedError):
            user.switch_company(second)

        user.grant_company(second)
        user.switch_company(second)
        assert user.active_company_id == second
