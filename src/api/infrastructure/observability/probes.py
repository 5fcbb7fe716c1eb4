"""Domain probes for infrastructure observability.

Domain probes provide a high-level instrumentation API oriented around
domain semantics, keeping infrastructure code clean and testable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class ConnectionProbe(Protocol):
    """Domain probe for database engine observability.

    This probe captures domain-significant events related to database
    engines without exposing logging implementation details.
    """

    def engine_created(self, database: str) -> None:
        """Record that an engine was created for a database."""
        ...

    def engine_disposed(self, database: str) -> None:
        """Record that an engine and its pool were disposed."""
        ...

    def pool_closed(self) -> None:
        """Record that the central connection pool was closed."""
        ...

    def with_context(self, context: ObservationContext) -> ConnectionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConnectionProbe:
    """Default implementation of ConnectionProbe using structlog.

    Supports observation context for including request-scoped metadata
    with all log events.
    """

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

    def with_context(self, context: ObservationContext) -> DefaultConnectionProbe:
        """Create a new probe with observation context bound."""
        return DefaultConnectionProbe(logger=self._logger, context=context)

    def engine_created(self, database: str) -> None:
        """Record that an engine was created for a database."""
        self._logger.debug(
            "database_engine_created",
            database=database,
            **self._get_context_kwargs(),
        )

    def engine_disposed(self, database: str) -> None:
        """Record that an engine and its pool were disposed."""
        self._logger.debug(
            "database_engine_disposed",
            database=database,
            **self._get_context_kwargs(),
        )

    def pool_closed(self) -> None:
        """Record that the central connection pool was closed."""
        self._logger.info(
            "connection_pool_closed",
            **self._get_context_kwargs(),
        )


class DatabaseServerProbe(Protocol):
    """Domain probe for server-level database administration."""

    def database_created(self, name: str) -> None:
        """Record that a physical database was created."""
        ...

    def database_already_exists(self, name: str) -> None:
        """Record that creation was skipped because the database exists."""
        ...

    def database_renamed(self, old_name: str, new_name: str) -> None:
        """Record that a physical database was renamed."""
        ...

    def database_dropped(self, name: str) -> None:
        """Record that a physical database was dropped."""
        ...

    def database_operation_failed(
        self, operation: str, name: str, error: Exception
    ) -> None:
        """Record that a server-level statement failed."""
        ...

    def with_context(self, context: ObservationContext) -> DatabaseServerProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultDatabaseServerProbe:
    """Default implementation of DatabaseServerProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultDatabaseServerProbe:
        """Create a new probe with observation context bound."""
        return DefaultDatabaseServerProbe(logger=self._logger, context=context)

    def database_created(self, name: str) -> None:
        self._logger.info(
            "database_created",
            database=name,
            **self._get_context_kwargs(),
        )

    def database_already_exists(self, name: str) -> None:
        self._logger.debug(
            "database_already_exists",
            database=name,
            **self._get_context_kwargs(),
        )

    def database_renamed(self, old_name: str, new_name: str) -> None:
        self._logger.info(
            "database_renamed",
            old_name=old_name,
            new_name=new_name,
            **self._get_context_kwargs(),
        )

    def database_dropped(self, name: str) -> None:
        self._logger.warning(
            "database_dropped",
            database=name,
            **self._get_context_kwargs(),
        )

    def database_operation_failed(
        self, operation: str, name: str, error: Exception
    ) -> None:
        self._logger.error(
            "database_operation_failed",
            operation=operation,
            database=name,
            error=str(error),
            **self._get_context_kwargs(),
        )


class CacheProbe(Protocol):
    """Domain probe for the advisory Redis cache."""

    def cache_unavailable(self, operation: str, key: str, error: Exception) -> None:
        """Record that a cache call failed and was treated as a miss."""
        ...

    def with_context(self, context: ObservationContext) -> CacheProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultCacheProbe:
    """Default implementation of CacheProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultCacheProbe:
        """Create a new probe with observation context bound."""
        return DefaultCacheProbe(logger=self._logger, context=context)

    def cache_unavailable(self, operation: str, key: str, error: Exception) -> None:
        """Record that a cache call failed and was treated as a miss."""
        self._logger.warning(
            "cache_unavailable",
            operation=operation,
            key=key,
            error=str(error),
            **self._get_context_kwargs(),
        )


class JobLockProbe(Protocol):
    """Domain probe for scheduled job serialization."""

    def lock_acquired(self, name: str) -> None:
        """Record that a job lock was acquired."""
        ...

    def lock_busy(self, name: str) -> None:
        """Record that a job lock is held by another run."""
        ...

    def lock_released(self, name: str) -> None:
        """Record that a job lock was released."""
        ...

    def lock_release_failed(self, name: str, error: Exception) -> None:
        """Record that releasing a job lock failed."""
        ...

    def with_context(self, context: ObservationContext) -> JobLockProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultJobLockProbe:
    """Default implementation of JobLockProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultJobLockProbe:
        """Create a new probe with observation context bound."""
        return DefaultJobLockProbe(logger=self._logger, context=context)

    def lock_acquired(self, name: str) -> None:
        self._logger.info("job_lock_acquired", lock=name, **self._get_context_kwargs())

    def lock_busy(self, name: str) -> None:
        self._logger.warning("job_already_running", lock=name, **self._get_context_kwargs())

    def lock_released(self, name: str) -> None:
        self._logger.info("job_lock_released", lock=name, **self._get_context_kwargs())

    def lock_release_failed(self, name: str, error: Exception) -> None:
        self._logger.warning(
            "job_lock_release_failed",
            lock=name,
            error=str(error),
            **self._get_context_kwargs(),
        )
