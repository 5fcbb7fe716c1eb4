"""Per-database engine registry.

Every tenant database (and every pooled database while it is being migrated)
gets its own async engine. Engines are created lazily and cached by database
name so requests for the same tenant share one connection pool.
"""

from __future__ import annotations

import threading

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_tenant_engine
from infrastructure.observability import ConnectionProbe, DefaultConnectionProbe
from infrastructure.settings import DatabaseSettings


class TenantEngineRegistry:
    """Cache of async engines keyed by physical database name."""

    def __init__(
        self,
        settings: DatabaseSettings,
        probe: ConnectionProbe | None = None,
    ) -> None:
        self._settings = settings
        self._probe = probe or DefaultConnectionProbe()
        self._engines: dict[str, AsyncEngine] = {}
        self._sessionmakers: dict[str, async_sessionmaker[AsyncSession]] = {}
        self._lock = threading.Lock()

    def get_engine(self, database_name: str) -> AsyncEngine:
        """Return the engine for a database, creating it on first use."""
        engine = self._engines.get(database_name)
        if engine is None:
            with self._lock:
                # Double-check after acquiring lock
                engine = self._engines.get(database_name)
                if engine is None:
                    engine = create_tenant_engine(self._settings, database_name)
                    self._engines[database_name] = engine
                    self._sessionmakers[database_name] = async_sessionmaker(
                        engine,
                        expire_on_commit=False,
                        class_=AsyncSession,
                    )
                    self._probe.engine_created(database_name)
        return engine

    def get_sessionmaker(self, database_name: str) -> async_sessionmaker[AsyncSession]:
        """Return the session factory bound to a database's engine."""
        self.get_engine(database_name)
        return self._sessionmakers[database_name]

    async def dispose(self, database_name: str) -> None:
        """Close every pooled connection to a database and forget its engine.

        Required before a database can be renamed, since PostgreSQL refuses
        ALTER DATABASE while sessions are connected to it.
        """
        with self._lock:
            engine = self._engines.pop(database_name, None)
            self._sessionmakers.pop(database_name, None)
        if engine is not None:
            await engine.dispose()
            self._probe.engine_disposed(database_name)

    async def dispose_all(self) -> None:
        """Dispose every cached engine (application shutdown)."""
        for name in list(self._engines):
            await self.dispose(name)

    def __contains__(self, database_name: object) -> bool:
        return database_name in self._engines
