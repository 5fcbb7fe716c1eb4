"""Protocol for lookup index observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class LookupIndexProbe(Protocol):
    """Domain probe for the email and company lookup indexes."""

    def company_mapping_recorded(self, company_id: str, tenant_id: str) -> None:
        """Record that a company mapping was inserted or refreshed."""
        ...

    def stale_email_hint(self, email: str, raw_value: str) -> None:
        """Record that a cached email hint held an unusable value."""
        ...

    def user_lookup_deactivated(self, email: str, tenant_id: str) -> None:
        """Record that a lookup row was flagged inactive."""
        ...

    def company_cache_invalidated(self, company_id: str, deleted: int) -> None:
        """Record a pattern delete of a company's cache entries."""
        ...

    def backfill_tenant_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that one tenant failed during repopulation."""
        ...

    def backfill_completed(
        self, processed: int, mappings_written: int, users_written: int, failed: int
    ) -> None:
        """Record the summary of a repopulation run."""
        ...

    def with_context(self, context: ObservationContext) -> LookupIndexProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultLookupIndexProbe:
    """Default implementation of LookupIndexProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultLookupIndexProbe:
        """Create a new probe with observation context bound."""
        return DefaultLookupIndexProbe(logger=self._logger, context=context)

    def company_mapping_recorded(self, company_id: str, tenant_id: str) -> None:
        """Record that a company mapping was inserted or refreshed."""
        self._logger.debug(
            "company_mapping_recorded",
            company_id=company_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def stale_email_hint(self, email: str, raw_value: str) -> None:
        """Record that a cached email hint held an unusable value."""
        self._logger.warning(
            "stale_email_hint",
            email=email,
            raw_value=raw_value,
            **self._get_context_kwargs(),
        )

    def user_lookup_deactivated(self, email: str, tenant_id: str) -> None:
        """Record that a lookup row was flagged inactive."""
        self._logger.info(
            "user_lookup_deactivated",
            email=email,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def company_cache_invalidated(self, company_id: str, deleted: int) -> None:
        """Record a pattern delete of a company's cache entries."""
        self._logger.debug(
            "company_cache_invalidated",
            company_id=company_id,
            deleted=deleted,
            **self._get_context_kwargs(),
        )

    def backfill_tenant_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that one tenant failed during repopulation."""
        self._logger.error(
            "lookup_backfill_tenant_failed",
            tenant_id=tenant_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def backfill_completed(
        self, processed: int, mappings_written: int, users_written: int, failed: int
    ) -> None:
        """Record the summary of a repopulation run."""
        self._logger.info(
            "lookup_backfill_completed",
            processed=processed,
            mappings_written=mappings_written,
            users_written=users_written,
            failed=failed,
            **self._get_context_kwargs(),
        )
