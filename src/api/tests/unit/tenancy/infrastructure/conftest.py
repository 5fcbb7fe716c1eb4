"""SQLite-backed fixtures for tenancy repository and isolation tests."""

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from infrastructure.database.models import Base, TenantBase

# Registers the tenancy models on both metadata trees
import tenancy.infrastructure.models  # noqa: F401


async def _engine_for(metadata):
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    return engine


@pytest.fixture
async def central_sessionmaker():
    """Sessionmaker over an in-memory copy of the central registry schema."""
    engine = await _engine_for(Base.metadata)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def tenant_sessionmaker():
    """Sessionmaker over an in-memory copy of a tenant database schema."""
    engine = await _engine_for(TenantBase.metadata)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()
