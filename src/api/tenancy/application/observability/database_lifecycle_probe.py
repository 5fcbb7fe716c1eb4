"""Protocol for database lifecycle observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class DatabaseLifecycleProbe(Protocol):
    """Domain probe for creating and migrating tenant databases."""

    def database_creation_skipped(self, tenant_id: str) -> None:
        """Record that per-tenant databases are disabled by configuration."""
        ...

    def database_ready(self, database: str, created: bool) -> None:
        """Record that a database exists (newly created or not)."""
        ...

    def migrations_applied(self, database: str, count: int) -> None:
        """Record that pending scripts were applied."""
        ...

    def nothing_to_migrate(self, database: str) -> None:
        """Record that a database was already current."""
        ...

    def tenant_migration_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that a tenant failed inside a batch run."""
        ...

    def batch_completed(self, processed: int, succeeded: int, failed: int) -> None:
        """Record the summary of a batch migration run."""
        ...

    def with_context(self, context: ObservationContext) -> DatabaseLifecycleProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultDatabaseLifecycleProbe:
    """Default implementation of DatabaseLifecycleProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultDatabaseLifecycleProbe:
        """Create a new probe with observation context bound."""
        return DefaultDatabaseLifecycleProbe(logger=self._logger, context=context)

    def database_creation_skipped(self, tenant_id: str) -> None:
        """Record that per-tenant databases are disabled by configuration."""
        self._logger.info(
            "tenant_database_creation_skipped",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def database_ready(self, database: str, created: bool) -> None:
        """Record that a database exists (newly created or not)."""
        self._logger.info(
            "tenant_database_ready",
            database=database,
            created=created,
            **self._get_context_kwargs(),
        )

    def migrations_applied(self, database: str, count: int) -> None:
        """Record that pending scripts were applied."""
        self._logger.info(
            "tenant_migrations_applied",
            database=database,
            count=count,
            **self._get_context_kwargs(),
        )

    def nothing_to_migrate(self, database: str) -> None:
        """Record that a database was already current."""
        self._logger.info(
            "tenant_nothing_to_migrate",
            database=database,
            **self._get_context_kwargs(),
        )

    def tenant_migration_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that a tenant failed inside a batch run."""
        self._logger.error(
            "tenant_migration_failed",
            tenant_id=tenant_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def batch_completed(self, processed: int, succeeded: int, failed: int) -> None:
        """Record the summary of a batch migration run."""
        self._logger.info(
            "tenant_migration_batch_completed",
            processed=processed,
            succeeded=succeeded,
            failed=failed,
            **self._get_context_kwargs(),
        )
