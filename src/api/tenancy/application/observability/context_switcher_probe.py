"""Protocol for tenant context switching observability.

Defines the interface for domain probes that capture activation and
deactivation of tenant databases for a unit of work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class ContextSwitcherProbe(Protocol):
    """Domain probe for the tenant context switcher."""

    def tenant_activated(self, tenant_id: str, database: str) -> None:
        """Record that a tenant became the active context."""
        ...

    def tenant_deactivated(self, tenant_id: str) -> None:
        """Record that the active tenant context was cleared."""
        ...

    def context_conflict(self, active_tenant_id: str, requested_tenant_id: str) -> None:
        """Record an attempt to activate a second tenant."""
        ...

    def tenant_unavailable(self, tenant_id: str, database: str, reason: str) -> None:
        """Record that a tenant database could not be activated."""
        ...

    def with_context(self, context: ObservationContext) -> ContextSwitcherProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultContextSwitcherProbe:
    """Default implementation of ContextSwitcherProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultContextSwitcherProbe:
        """Create a new probe with observation context bound."""
        return DefaultContextSwitcherProbe(logger=self._logger, context=context)

    def tenant_activated(self, tenant_id: str, database: str) -> None:
        self._logger.debug(
            "tenant_context_activated",
            tenant_id=tenant_id,
            database=database,
            **self._get_context_kwargs(),
        )

    def tenant_deactivated(self, tenant_id: str) -> None:
        self._logger.debug(
            "tenant_context_deactivated",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def context_conflict(self, active_tenant_id: str, requested_tenant_id: str) -> None:
        self._logger.error(
            "tenant_context_conflict",
            active_tenant_id=active_tenant_id,
            requested_tenant_id=requested_tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_unavailable(self, tenant_id: str, database: str, reason: str) -> None:
        self._logger.warning(
            "tenant_unavailable",
            tenant_id=tenant_id,
            database=database,
            reason=reason,
            **self._get_context_kwargs(),
        )
