"""Domain probe for company isolation events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class IsolationProbe(Protocol):
    """Domain probe for the company isolation guard."""

    def isolation_violation(
        self, table: str, expected_company_id: str, actual_company_id: str | None
    ) -> None:
        """Record that a row or write crossed a company boundary."""
        ...

    def cross_company_query(self, table: str, company_id: str) -> None:
        """Record an administrative read that bypassed the automatic predicate."""
        ...

    def with_context(self, context: ObservationContext) -> IsolationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultIsolationProbe:
    """Default implementation of IsolationProbe using structlog.

    Violations are logged at critical level; they indicate a scoping bug
    or a leak and must never be mistaken for routine warnings.
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

    def with_context(self, context: ObservationContext) -> DefaultIsolationProbe:
        """Create a new probe with observation context bound."""
        return DefaultIsolationProbe(logger=self._logger, context=context)

    def isolation_violation(
        self, table: str, expected_company_id: str, actual_company_id: str | None
    ) -> None:
        """Record that a row or write crossed a company boundary."""
        self._logger.critical(
            "company_isolation_violation",
            table=table,
            expected_company_id=expected_company_id,
            actual_company_id=actual_company_id,
            **self._get_context_kwargs(),
        )

    def cross_company_query(self, table: str, company_id: str) -> None:
        """Record an administrative read that bypassed the automatic predicate."""
        self._logger.info(
            "cross_company_query",
            table=table,
            company_id=company_id,
            **self._get_context_kwargs(),
        )
