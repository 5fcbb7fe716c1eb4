"""Server-level database administration for PostgreSQL.

Creating, renaming, dropping and enumerating physical databases happens
outside any single database, through an AUTOCOMMIT engine bound to the
maintenance database. Table enumeration goes through the tenant engine registry because
``pg_tables`` only describes the database a session is connected to.
"""

from __future__ import annotations

import re

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseCreationError,
)
from infrastructure.database.registry import TenantEngineRegistry
from infrastructure.observability import (
    DatabaseServerProbe,
    DefaultDatabaseServerProbe,
)

_DATABASE_NAME = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def quote_database_name(name: str) -> str:
    """Validate and double-quote a database name for DDL.

    DDL statements cannot take bind parameters for identifiers, so names are
    restricted to lowercase letters, digits and underscores.

    Raises:
        ValueError: If the name is not a safe PostgreSQL identifier
    """
    if not _DATABASE_NAME.match(name):
        raise ValueError(f"Invalid database name: {name!r}")
    return f'"{name}"'


class DatabaseServer:
    """Administrative operations against the PostgreSQL server."""

    def __init__(
        self,
        admin_engine: AsyncEngine,
        engines: TenantEngineRegistry,
        probe: DatabaseServerProbe | None = None,
    ) -> None:
        self._admin_engine = admin_engine
        self._engines = engines
        self._probe = probe or DefaultDatabaseServerProbe()

    async def database_exists(self, name: str) -> bool:
        """Check pg_database for ``name``.

        Raises:
            DatabaseConnectionError: If the server cannot be queried
        """
        try:
            async with self._admin_engine.connect() as conn:
                result = await conn.execute(
                    text("SELECT 1 FROM pg_database WHERE datname = :name"),
                    {"name": name},
                )
                return result.scalar_one_or_none() is not None
        except (DBAPIError, OSError) as e:
            self._probe.database_operation_failed("exists", name, e)
            raise DatabaseConnectionError(
                f"Failed to query pg_database for {name}: {e}"
            ) from e

    async def create_database(self, name: str) -> bool:
        """Create a database unless it already exists.

        Returns:
            True if the database was created, False if it already existed

        Raises:
            DatabaseCreationError: If the server rejects the statement
        """
        quoted = quote_database_name(name)
        if await self.database_exists(name):
            self._probe.database_already_exists(name)
            return False

        try:
            async with self._admin_engine.connect() as conn:
                await conn.execute(text(f"CREATE DATABASE {quoted}"))
        except DBAPIError as e:
            # Lost a race with a concurrent creator
            if await self.database_exists(name):
                self._probe.database_already_exists(name)
                return False
            self._probe.database_operation_failed("create", name, e)
            raise DatabaseCreationError(
                f"Failed to create database {name}: {e}", database_name=name
            ) from e

        self._probe.database_created(name)
        return True

    async def rename_database(self, old_name: str, new_name: str) -> None:
        """Rename a database, dropping cached engines for the old name first.

        Raises:
            DatabaseCreationError: If the rename fails
        """
        old_quoted = quote_database_name(old_name)
        new_quoted = quote_database_name(new_name)
        await self._engines.dispose(old_name)

        try:
            async with self._admin_engine.connect() as conn:
                await conn.execute(
                    text(f"ALTER DATABASE {old_quoted} RENAME TO {new_quoted}")
                )
        except DBAPIError as e:
            self._probe.database_operation_failed("rename", old_name, e)
            raise DatabaseCreationError(
                f"Failed to rename database {old_name} to {new_name}: {e}",
                database_name=old_name,
            ) from e

        self._probe.database_renamed(old_name, new_name)

    async def drop_database(self, name: str) -> None:
        """Drop a database, terminating any remaining connections.

        Raises:
            DatabaseCreationError: If the server rejects the statement
        """
        quoted = quote_database_name(name)
        await self._engines.dispose(name)

        try:
            async with self._admin_engine.connect() as conn:
                await conn.execute(
                    text(f"DROP DATABASE IF EXISTS {quoted} WITH (FORCE)")
                )
        except DBAPIError as e:
            self._probe.database_operation_failed("drop", name, e)
            raise DatabaseCreationError(
                f"Failed to drop database {name}: {e}", database_name=name
            ) from e

        self._probe.database_dropped(name)

    async def list_databases(self, prefix: str | None = None) -> list[str]:
        """List non-template databases, optionally filtered by name prefix."""
        query = "SELECT datname FROM pg_database WHERE NOT datistemplate"
        params: dict[str, str] = {}
        if prefix:
            query += " AND starts_with(datname, :prefix)"
            params["prefix"] = prefix
        query += " ORDER BY datname"

        async with self._admin_engine.connect() as conn:
            result = await conn.execute(text(query), params)
            return list(result.scalars().all())

    async def list_tables(self, database_name: str) -> list[str]:
        """List user tables of the public schema inside one database."""
        engine = self._engines.get_engine(database_name)
        async with engine.connect() as conn:
            result = await conn.execute(
                text(
                    "SELECT tablename FROM pg_tables "
                    "WHERE schemaname = 'public' ORDER BY tablename"
                )
            )
            return list(result.scalars().all())
