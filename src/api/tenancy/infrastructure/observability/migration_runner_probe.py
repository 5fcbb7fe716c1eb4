"""Domain probe for tenant script application."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class MigrationRunnerProbe(Protocol):
    """Domain probe for applying SQL script groups to one database."""

    def script_applied(self, database: str, script: str) -> None:
        """Record that a script ran and was recorded in the ledger."""
        ...

    def script_checksum_changed(self, database: str, script: str) -> None:
        """Record that an applied script was edited on disk afterwards."""
        ...

    def group_failed(self, database: str, group: str, script: str, error: Exception) -> None:
        """Record that a group's transaction was rolled back."""
        ...

    def with_context(self, context: ObservationContext) -> MigrationRunnerProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultMigrationRunnerProbe:
    """Default implementation of MigrationRunnerProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultMigrationRunnerProbe:
        """Create a new probe with observation context bound."""
        return DefaultMigrationRunnerProbe(logger=self._logger, context=context)

    def script_applied(self, database: str, script: str) -> None:
        self._logger.debug(
            "tenant_script_applied",
            database=database,
            script=script,
            **self._get_context_kwargs(),
        )

    def script_checksum_changed(self, database: str, script: str) -> None:
        self._logger.warning(
            "tenant_script_checksum_changed",
            database=database,
            script=script,
            **self._get_context_kwargs(),
        )

    def group_failed(self, database: str, group: str, script: str, error: Exception) -> None:
        self._logger.error(
            "tenant_script_group_failed",
            database=database,
            group=group,
            script=script,
            error=str(error),
            **self._get_context_kwargs(),
        )
