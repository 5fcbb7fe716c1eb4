"""Domain probe for application startup and lifecycle events.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events during application initialization and shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class StartupProbe(Protocol):
    """Domain probe for application startup operations."""

    def application_started(self, version: str, create_databases: bool) -> None:
        """Record that the application finished starting."""
        ...

    def application_stopped(self) -> None:
        """Record that the application released its resources."""
        ...

    def shutdown_cleanup_failed(self, resource: str, error: Exception) -> None:
        """Record that releasing a resource during shutdown failed."""
        ...

    def with_context(self, context: ObservationContext) -> StartupProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStartupProbe:
    """Default implementation of StartupProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultStartupProbe:
        """Create a new probe with observation context bound."""
        return DefaultStartupProbe(logger=self._logger, context=context)

    def application_started(self, version: str, create_databases: bool) -> None:
        """Record that the application finished starting."""
        self._logger.info(
            "application_started",
            version=version,
            create_databases=create_databases,
            **self._get_context_kwargs(),
        )

    def application_stopped(self) -> None:
        """Record that the application released its resources."""
        self._logger.info(
            "application_stopped",
            **self._get_context_kwargs(),
        )

    def shutdown_cleanup_failed(self, resource: str, error: Exception) -> None:
        """Record that releasing a resource during shutdown failed."""
        self._logger.warning(
            "shutdown_cleanup_failed",
            resource=resource,
            error=str(error),
            **self._get_context_kwargs(),
        )
