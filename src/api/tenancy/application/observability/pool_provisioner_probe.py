"""Protocol for warm pool observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class PoolProvisionerProbe(Protocol):
    """Domain probe for the database pool provisioner."""

    def entry_provisioned(self, name: str) -> None:
        ...

    def provision_failed(self, name: str, error: Exception) -> None:
        ...

    def pool_provisioned(self, requested: int, created: int) -> None:
        ...

    def entry_claimed(self, name: str, tenant_id: str) -> None:
        ...

    def pool_exhausted(self, tenant_id: str) -> None:
        ...

    def with_context(self, context: ObservationContext) -> PoolProvisionerProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultPoolProvisionerProbe:
    """Default implementation of PoolProvisionerProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultPoolProvisionerProbe:
        """Create a new probe with observation context bound."""
        return DefaultPoolProvisionerProbe(logger=self._logger, context=context)

    def entry_provisioned(self, name: str) -> None:
        self._logger.info(
            "pool_entry_provisioned", database=name, **self._get_context_kwargs()
        )

    def provision_failed(self, name: str, error: Exception) -> None:
        self._logger.error(
            "pool_entry_provision_failed",
            database=name,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def pool_provisioned(self, requested: int, created: int) -> None:
        self._logger.info(
            "pool_provisioned",
            requested=requested,
            created=created,
            **self._get_context_kwargs(),
        )

    def entry_claimed(self, name: str, tenant_id: str) -> None:
        self._logger.info(
            "pool_entry_claimed",
            database=name,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def pool_exhausted(self, tenant_id: str) -> None:
        self._logger.warning(
            "pool_exhausted", tenant_id=tenant_id, **self._get_context_kwargs()
        )
