"""Protocols for the schema migration machinery of the tenancy bounded context.

These protocols let application services drive migrations without
depending on the concrete runner.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine

from tenancy.domain.value_objects import MigrationReport, ScriptGroup


class MigrationRunnerProtocol(Protocol):
    """Applies ordered script groups to one database and keeps its ledger."""

    async def apply(
        self,
        engine: AsyncEngine,
        database_name: str,
        plan: Sequence[ScriptGroup],
    ) -> MigrationReport:
        """Apply every pending script of ``plan`` in order.

        Raises:
            MigrationError: If a script fails
        """
        ...
