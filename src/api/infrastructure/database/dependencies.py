"""Database dependency injection for FastAPI and batch commands.

Provides the central registry session factory, the administrative engine
and the tenant engine registry as process-wide singletons.
"""

from __future__ import annotations

import threading
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_admin_engine, create_central_engine
from infrastructure.database.registry import TenantEngineRegistry
from infrastructure.database.server import DatabaseServer
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings

# Module-level probe for observability
_probe = DefaultConnectionProbe()

# Module-level instances (created on first use)
_central_engine: AsyncEngine | None = None
_central_sessionmaker: async_sessionmaker[AsyncSession] | None = None
_admin_engine: AsyncEngine | None = None
_engine_registry: TenantEngineRegistry | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def get_central_engine() -> AsyncEngine:
    """Get the central registry engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.
    Also creates and caches the sessionmaker for efficient session creation.

    Returns:
        Configured async engine for the tenant registry
    """
    global _central_engine, _central_sessionmaker
    if _central_engine is None:
        with _engine_lock:
            # Double-check after acquiring lock
            if _central_engine is None:
                settings = get_database_settings()
                _central_engine = create_central_engine(settings)
                _central_sessionmaker = async_sessionmaker(
                    _central_engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
    return _central_engine


def get_central_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the session factory for the central registry database."""
    get_central_engine()
    assert _central_sessionmaker is not None
    return _central_sessionmaker


def get_admin_engine() -> AsyncEngine:
    """Get the AUTOCOMMIT engine used for CREATE/ALTER DATABASE (singleton)."""
    global _admin_engine
    if _admin_engine is None:
        with _engine_lock:
            if _admin_engine is None:
                _admin_engine = create_admin_engine(get_database_settings())
    return _admin_engine


def get_engine_registry() -> TenantEngineRegistry:
    """Get the per-database engine registry (singleton)."""
    global _engine_registry
    if _engine_registry is None:
        with _engine_lock:
            if _engine_registry is None:
                _engine_registry = TenantEngineRegistry(get_database_settings())
    return _engine_registry


def get_database_server() -> DatabaseServer:
    """Build a DatabaseServer over the shared admin engine and registry."""
    return DatabaseServer(
        admin_engine=get_admin_engine(),
        engines=get_engine_registry(),
    )


async def get_central_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a central registry session (FastAPI dependency).

    The session is configured to NOT auto-commit. Callers must explicitly
    manage transactions using `async with session.begin()`.

    Yields:
        AsyncSession bound to the central registry database
    """
    sessionmaker = get_central_sessionmaker()

    async with sessionmaker() as session:
        yield session


async def close_database_connections() -> None:
    """Close all database engine connections.

    Should be called on application shutdown to properly cleanup connections.
    Also resets sessionmakers to allow reinitialization.
    """
    global _central_engine, _central_sessionmaker, _admin_engine, _engine_registry

    if _engine_registry is not None:
        await _engine_registry.dispose_all()
        _engine_registry = None

    if _admin_engine is not None:
        await _admin_engine.dispose()
        _admin_engine = None

    if _central_engine is not None:
        await _central_engine.dispose()
        _probe.pool_closed()
        _central_engine = None
        _central_sessionmaker = None
