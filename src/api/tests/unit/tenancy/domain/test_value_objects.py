"""Unit tests for tenancy value objects."""

from pathlib import Path

import pytest

from tenancy.domain.value_objects import (
    CompanyId,
    ScriptGroup,
    TenantId,
    normalize_email,
)


class TestTenantId:
    """Tests for TenantId value object."""

    def test_generates_valid_ulid(self):
        tenant_id = TenantId.generate()

        assert len(tenant_id.value) == 26
        assert TenantId.from_string(tenant_id.value) == tenant_id

    def test_rejects_invalid_value(self):
        with pytest.raises(ValueError, match="Invalid TenantId"):
            TenantId.from_string("not-a-ulid")

    def test_is_hashable(self):
        tenant_id = TenantId.generate()
        assert {tenant_id, TenantId(value=tenant_id.value)} == {tenant_id}


class TestCompanyId:
    """Tests for CompanyId value object."""

    def test_rejects_invalid_value(self):
        with pytest.raises(ValueError, match="Invalid CompanyId"):
            CompanyId.from_string("company-1")

    def test_str_is_value(self):
        company_id = CompanyId.generate()
        assert str(company_id) == company_id.value


class TestNormalizeEmail:
    def test_trims_and_lowercases(self):
        assert normalize_email("  Ana.Souza@Example.COM ") == "ana.souza@example.com"


class TestScriptGroup:
    """Tests for ScriptGroup ledger keys."""

    def test_script_key_is_relative_posix_path(self, tmp_path: Path):
        script = tmp_path / "users" / "0001_create_users.sql"
        group = ScriptGroup(name="users", scripts=(script,), root=tmp_path)

        assert group.script_key(script) == "users/0001_create_users.sql"
