"""Applies SQL script groups to one database and records them in a ledger.

Each group runs in its own transaction: either every pending script of the
group is applied and recorded, or none is. Scripts already in the ledger
are skipped, so a failed run can simply be repeated.
"""

from __future__ import annotations

import hashlib
from typing import Sequence

import asyncpg
from sqlalchemy import insert, select, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from infrastructure.database.exceptions import MigrationError
from infrastructure.database.models import TenantBase
from tenancy.domain.value_objects import MigrationReport, ScriptGroup
from tenancy.infrastructure.models import SchemaMigrationModel
from tenancy.infrastructure.observability import (
    DefaultMigrationRunnerProbe,
    MigrationRunnerProbe,
)

# Serializes concurrent runners against the same database
_LEDGER_LOCK_KEY = 72_540_119


def checksum(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class MigrationRunner:
    """Executes script groups against an engine bound to one database."""

    def __init__(self, probe: MigrationRunnerProbe | None = None) -> None:
        self._probe = probe or DefaultMigrationRunnerProbe()

    async def apply(
        self,
        engine: AsyncEngine,
        database_name: str,
        plan: Sequence[ScriptGroup],
    ) -> MigrationReport:
        """Apply every pending script of ``plan`` in order.

        Raises:
            MigrationError: If a script fails; its group is rolled back and
                groups after it are not attempted
        """
        report = MigrationReport(database_name=database_name)

        try:
            async with engine.begin() as conn:
                await conn.run_sync(
                    TenantBase.metadata.create_all,
                    tables=[SchemaMigrationModel.__table__],
                )
        except DBAPIError as e:
            raise MigrationError(
                f"Cannot prepare migration ledger in {database_name}: {e}",
                database_name=database_name,
            ) from e

        applied = await self._applied_checksums(engine)

        for group in plan:
            pending = []
            for script in group.scripts:
                key = group.script_key(script)
                content = script.read_bytes()
                if key in applied:
                    report.skipped += 1
                    if applied[key] != checksum(content):
                        self._probe.script_checksum_changed(database_name, key)
                    continue
                pending.append((key, content))

            if pending:
                report.applied.extend(
                    await self._apply_group(engine, database_name, group, pending)
                )

        return report

    async def _applied_checksums(self, engine: AsyncEngine) -> dict[str, str]:
        async with engine.connect() as conn:
            result = await conn.execute(
                select(SchemaMigrationModel.script, SchemaMigrationModel.checksum)
            )
            return {row.script: row.checksum for row in result}

    async def _apply_group(
        self,
        engine: AsyncEngine,
        database_name: str,
        group: ScriptGroup,
        pending: list[tuple[str, bytes]],
    ) -> list[str]:
        """Apply one group in a single transaction and return the keys applied."""
        current = ""
        applied: list[str] = []
        try:
            async with engine.begin() as conn:
                # Also opens the transaction the raw driver calls join
                await conn.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"),
                    {"key": _LEDGER_LOCK_KEY},
                )
                # A concurrent runner may have applied some while we waited
                result = await conn.execute(select(SchemaMigrationModel.script))
                done = set(result.scalars().all())
                for key, content in pending:
                    if key in done:
                        continue
                    current = key
                    await _execute_script(conn, content.decode("utf-8"))
                    await conn.execute(
                        insert(SchemaMigrationModel.__table__).values(
                            script=key,
                            group_name=group.name,
                            checksum=checksum(content),
                        )
                    )
                    self._probe.script_applied(database_name, key)
                    applied.append(key)
        except (DBAPIError, asyncpg.PostgresError) as e:
            self._probe.group_failed(database_name, group.name, current, e)
            raise MigrationError(
                f"Script {current} failed in {database_name}: {e}",
                database_name=database_name,
                script=current,
            ) from e

        return applied


async def _execute_script(conn: AsyncConnection, sql: str) -> None:
    """Run a script that may hold several statements.

    asyncpg executes multi-statement text only through its simple query
    protocol, which SQLAlchemy's prepared-statement path does not use.
    """
    raw = await conn.get_raw_connection()
    await raw.driver_connection.execute(sql)
