"""Integration test fixtures for tenant database tests.

These fixtures require a running PostgreSQL server whose user may create
databases. Connection settings come from the usual TESSERA_DB_* variables.
Tests are skipped when the server cannot be reached.
"""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine
from ulid import ULID

from infrastructure.database.engines import create_admin_engine
from infrastructure.database.registry import TenantEngineRegistry
from infrastructure.database.server import DatabaseServer, quote_database_name
from infrastructure.settings import DatabaseSettings

TEST_PREFIX = "tessera_it_"


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests."""
    return DatabaseSettings()


@pytest.fixture
async def admin_engine(
    integration_db_settings: DatabaseSettings,
) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_admin_engine(integration_db_settings)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (DBAPIError, OSError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL is not reachable: {e}")

    yield engine
    await engine.dispose()


@pytest.fixture
async def engines(
    integration_db_settings: DatabaseSettings,
) -> AsyncGenerator[TenantEngineRegistry, None]:
    registry = TenantEngineRegistry(integration_db_settings)
    yield registry
    await registry.dispose_all()


@pytest.fixture
def server(admin_engine: AsyncEngine, engines: TenantEngineRegistry) -> DatabaseServer:
    return DatabaseServer(admin_engine=admin_engine, engines=engines)


@pytest.fixture
async def scratch_database(
    admin_engine: AsyncEngine, engines: TenantEngineRegistry
) -> AsyncGenerator[str, None]:
    """Name of a database dropped after the test, whether or not it was created."""
    name = f"{TEST_PREFIX}{str(ULID()).lower()}"
    yield name

    await engines.dispose(name)
    async with admin_engine.connect() as conn:
        await conn.execute(
            text(f"DROP DATABASE IF EXISTS {quote_database_name(name)} WITH (FORCE)")
        )
