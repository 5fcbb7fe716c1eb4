"""Domain probe for tenancy repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to the central registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class TenantRepositoryProbe(Protocol):
    """Domain probe for tenant registry persistence."""

    def tenant_saved(self, tenant_id: str) -> None:
        """Record that a tenant was successfully saved."""
        ...

    def duplicate_tax_id(self, tax_id: str) -> None:
        """Record that a duplicate tax id was rejected."""
        ...

    def tenants_listed(self, count: int) -> None:
        """Record that tenants were listed."""
        ...

    def with_context(self, context: ObservationContext) -> TenantRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class PoolRepositoryProbe(Protocol):
    """Domain probe for warm pool persistence."""

    def entry_registered(self, name: str) -> None:
        """Record that a pool entry was registered as free."""
        ...

    def claim_lost(self, entry_id: str, tenant_id: str) -> None:
        """Record that a concurrent claimer assigned the entry first."""
        ...

    def entry_released(self, name: str) -> None:
        """Record that an entry went back to the free pool."""
        ...

    def with_context(self, context: ObservationContext) -> PoolRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantRepositoryProbe:
    """Default implementation of TenantRepositoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantRepositoryProbe(logger=self._logger, context=context)

    def tenant_saved(self, tenant_id: str) -> None:
        """Record that a tenant was successfully saved."""
        self._logger.info(
            "tenant_saved",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def duplicate_tax_id(self, tax_id: str) -> None:
        """Record that a duplicate tax id was rejected."""
        self._logger.warning(
            "duplicate_tenant_tax_id",
            tax_id=tax_id,
            **self._get_context_kwargs(),
        )

    def tenants_listed(self, count: int) -> None:
        """Record that tenants were listed."""
        self._logger.debug(
            "tenants_listed",
            count=count,
            **self._get_context_kwargs(),
        )


class DefaultPoolRepositoryProbe:
    """Default implementation of PoolRepositoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultPoolRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultPoolRepositoryProbe(logger=self._logger, context=context)

    def entry_registered(self, name: str) -> None:
        """Record that a pool entry was registered as free."""
        self._logger.info(
            "pool_entry_registered",
            database=name,
            **self._get_context_kwargs(),
        )

    def claim_lost(self, entry_id: str, tenant_id: str) -> None:
        """Record that a concurrent claimer assigned the entry first."""
        self._logger.info(
            "pool_claim_lost",
            pool_entry_id=entry_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def entry_released(self, name: str) -> None:
        """Record that an entry went back to the free pool."""
        self._logger.warning(
            "pool_entry_released",
            database=name,
            **self._get_context_kwargs(),
        )
