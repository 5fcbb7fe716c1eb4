"""Unit tests for infrastructure settings."""

import pytest
from pydantic import ValidationError

from infrastructure.settings import CacheSettings, DatabaseSettings, TenancySettings


class TestDatabaseSettingsPoolConfiguration:
    """Tests for connection pool configuration."""

    def test_default_pool_settings(self):
        """Should have sensible pool defaults."""
        settings = DatabaseSettings()
        assert settings.pool_min_connections >= 1
        assert settings.pool_max_connections >= settings.pool_min_connections
        assert settings.pool_max_connections <= 20

    def test_pool_max_must_be_greater_than_or_equal_to_min(self):
        """Should validate max >= min."""
        with pytest.raises(ValidationError) as exc_info:
            DatabaseSettings(pool_min_connections=10, pool_max_connections=5)

        assert "pool_max_connections" in str(exc_info.value)

    def test_pool_max_equal_to_min_is_valid(self):
        """Should allow max == min."""
        settings = DatabaseSettings(pool_min_connections=5, pool_max_connections=5)
        assert settings.pool_min_connections == 5
        assert settings.pool_max_connections == 5

    def test_pool_min_must_be_positive(self):
        """Pool min connections must be >= 1."""
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_min_connections=0)

    def test_admin_database_defaults_to_postgres(self):
        """CREATE DATABASE runs against the maintenance database."""
        assert DatabaseSettings().admin_database == "postgres"

    def test_connection_string_hides_password(self):
        settings = DatabaseSettings(password="s3cret")
        assert "s3cret" not in settings.connection_string


class TestTenancySettings:
    """Tests for tenant provisioning settings."""

    def test_defaults(self):
        settings = TenancySettings()
        assert settings.create_databases is True
        assert settings.database_prefix == "tenant_"
        assert settings.pool_prefix == "tenant_pool_"
        assert settings.pool_floor == 5
        assert settings.migrations_path.is_dir()

    def test_reads_environment(self, monkeypatch):
        """Settings come from TESSERA_TENANCY_* variables."""
        monkeypatch.setenv("TESSERA_TENANCY_CREATE_DATABASES", "false")
        monkeypatch.setenv("TESSERA_TENANCY_POOL_FLOOR", "2")

        settings = TenancySettings()

        assert settings.create_databases is False
        assert settings.pool_floor == 2

    def test_floor_cannot_exceed_max_size(self):
        with pytest.raises(ValidationError) as exc_info:
            TenancySettings(pool_floor=10, pool_max_size=5)

        assert "pool_floor" in str(exc_info.value)

    def test_pool_prefix_must_differ_from_tenant_prefix(self):
        with pytest.raises(ValidationError):
            TenancySettings(database_prefix="db_", pool_prefix="db_")

    def test_fingerprint_salt_is_secret(self):
        settings = TenancySettings(fingerprint_salt="pepper")
        assert "pepper" not in repr(settings)
        assert settings.fingerprint_salt.get_secret_value() == "pepper"


class TestCacheSettings:
    """Tests for Redis cache settings."""

    def test_defaults(self):
        settings = CacheSettings()
        assert settings.url.startswith("redis://")
        assert settings.key_prefix == "tessera"
        assert settings.job_lock_timeout == 3600
