"""Protocol for credential resolution observability.

Events never carry passwords or fingerprints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class CredentialResolverProbe(Protocol):
    """Domain probe for resolving a login to a tenant."""

    def resolved_from_cache(self, tenant_id: str) -> None:
        """Record a fast-path hit that touched no database."""
        ...

    def resolved(self, tenant_id: str, source: str) -> None:
        """Record a successful resolution and where it was found."""
        ...

    def index_hint_rejected(self, email: str, tenant_id: str) -> None:
        """Record that an index candidate did not accept the credential."""
        ...

    def fallback_scan_started(self, email: str, tenant_count: int) -> None:
        """Record that the full tenant scan is about to run."""
        ...

    def tenant_skipped(self, tenant_id: str, reason: str) -> None:
        """Record that a tenant could not be checked and was skipped."""
        ...

    def resolution_failed(self, email: str) -> None:
        """Record that no tenant accepted the credential."""
        ...

    def with_context(self, context: ObservationContext) -> CredentialResolverProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultCredentialResolverProbe:
    """Default implementation of CredentialResolverProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultCredentialResolverProbe:
        """Create a new probe with observation context bound."""
        return DefaultCredentialResolverProbe(logger=self._logger, context=context)

    def resolved_from_cache(self, tenant_id: str) -> None:
        self._logger.debug(
            "credential_resolved_from_cache",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def resolved(self, tenant_id: str, source: str) -> None:
        self._logger.info(
            "credential_resolved",
            tenant_id=tenant_id,
            source=source,
            **self._get_context_kwargs(),
        )

    def index_hint_rejected(self, email: str, tenant_id: str) -> None:
        self._logger.debug(
            "credential_index_hint_rejected",
            email=email,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def fallback_scan_started(self, email: str, tenant_count: int) -> None:
        self._logger.info(
            "credential_fallback_scan_started",
            email=email,
            tenant_count=tenant_count,
            **self._get_context_kwargs(),
        )

    def tenant_skipped(self, tenant_id: str, reason: str) -> None:
        self._logger.warning(
            "credential_tenant_skipped",
            tenant_id=tenant_id,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def resolution_failed(self, email: str) -> None:
        self._logger.info(
            "credential_resolution_failed",
            email=email,
            **self._get_context_kwargs(),
        )
