"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MIGRATIONS_PATH = (
    Path(__file__).resolve().parent.parent
    / "tenancy"
    / "infrastructure"
    / "tenant_migrations"
)


class DatabaseSettings(BaseSettings):
    """Database server connection settings.

    The same server hosts the central registry database and every tenant
    database, so only the database name differs between engines.

    Environment variables:
        TESSERA_DB_HOST: Database host (default: localhost)
        TESSERA_DB_PORT: Database port (default: 5432)
        TESSERA_DB_DATABASE: Central registry database name (default: tessera)
        TESSERA_DB_ADMIN_DATABASE: Maintenance database used for CREATE/ALTER
            DATABASE statements (default: postgres)
        TESSERA_DB_USERNAME: Database user (default: tessera)
        TESSERA_DB_PASSWORD: Database password (required in production)
        TESSERA_DB_POOL_MIN_CONNECTIONS: Minimum connections per engine (default: 1)
        TESSERA_DB_POOL_MAX_CONNECTIONS: Maximum connections per engine (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="TESSERA_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="tessera", description="Central database name")
    admin_database: str = Field(
        default="postgres",
        description="Maintenance database for server-level statements",
    )
    username: str = Field(default="tessera", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=1,
        description="Minimum connections per engine",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=5,
        description="Maximum connections per engine",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class TenancySettings(BaseSettings):
    """Tenant provisioning and resolution settings.

    Environment variables:
        TESSERA_TENANCY_CREATE_DATABASES: Create one physical database per
            tenant (default: true). When false, database creation and
            migration are skipped unless explicitly forced.
        TESSERA_TENANCY_DATABASE_PREFIX: Tenant database name prefix (default: tenant_)
        TESSERA_TENANCY_POOL_PREFIX: Warm pool database name prefix (default: tenant_pool_)
        TESSERA_TENANCY_POOL_FLOOR: Free pooled databases to keep (default: 5)
        TESSERA_TENANCY_POOL_MAX_SIZE: Upper bound for the warm pool (default: 20)
        TESSERA_TENANCY_MIGRATIONS_PATH: Root directory of tenant SQL script groups
        TESSERA_TENANCY_EMAIL_INDEX_TTL: Seconds an email→tenant hint lives (default: 600)
        TESSERA_TENANCY_CREDENTIAL_CACHE_TTL: Seconds a successful resolution
            is cached (default: 120)
        TESSERA_TENANCY_FINGERPRINT_SALT: Secret salt for password fingerprints
    """

    model_config = SettingsConfigDict(
        env_prefix="TESSERA_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    create_databases: bool = Field(
        default=True,
        description="Provision one physical database per tenant",
    )
    database_prefix: str = Field(default="tenant_", min_length=1)
    pool_prefix: str = Field(default="tenant_pool_", min_length=1)
    pool_floor: int = Field(default=5, ge=0, le=100)
    pool_max_size: int = Field(default=20, ge=0, le=500)
    migrations_path: Path = Field(default=DEFAULT_MIGRATIONS_PATH)
    email_index_ttl: int = Field(default=600, ge=1)
    credential_cache_ttl: int = Field(default=120, ge=1)
    fingerprint_salt: SecretStr = Field(
        default=SecretStr("dev-fingerprint-salt-change-in-production"),
    )
    claim_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Pool entries tried before falling back to on-demand creation",
    )

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> "TenancySettings":
        """Validate the pool floor fits under the pool ceiling."""
        if self.pool_floor > self.pool_max_size:
            raise ValueError(
                f"pool_floor ({self.pool_floor}) must be <= "
                f"pool_max_size ({self.pool_max_size})"
            )
        if self.pool_prefix == self.database_prefix:
            raise ValueError("pool_prefix must differ from database_prefix")
        return self


class CacheSettings(BaseSettings):
    """Redis cache settings.

    Environment variables:
        TESSERA_CACHE_URL: Redis connection URL (default: redis://localhost:6379/0)
        TESSERA_CACHE_KEY_PREFIX: Namespace for all keys (default: tessera)
        TESSERA_CACHE_JOB_LOCK_TIMEOUT: Seconds before a job lock expires (default: 3600)
    """

    model_config = SettingsConfigDict(
        env_prefix="TESSERA_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(default="redis://localhost:6379/0")
    key_prefix: str = Field(default="tessera", min_length=1)
    job_lock_timeout: int = Field(default=3600, ge=1)


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Tessera API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def tenancy(self) -> TenancySettings:
        """Get tenancy settings."""
        return get_tenancy_settings()

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return get_cache_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()


@lru_cache
def get_cache_settings() -> CacheSettings:
    """Get cached cache settings."""
    return CacheSettings()
