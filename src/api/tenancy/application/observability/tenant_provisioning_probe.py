"""Protocol for tenant signup and tenant data observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class TenantProvisioningProbe(Protocol):
    """Domain probe for tenant signup and writes to tenant data."""

    def tenant_registered(self, tenant_id: str, database: str, source: str) -> None:
        """Record that a tenant was registered and its database is ready."""
        ...

    def duplicate_tenant(self, tax_id: str) -> None:
        """Record that signup was rejected for an existing tax id."""
        ...

    def pool_entry_unusable(self, name: str, error: Exception) -> None:
        """Record that a claimed entry could not be renamed and was released."""
        ...

    def signup_rolled_back(
        self, tenant_id: str, database: str, error: Exception
    ) -> None:
        """Record that signup failed after its database was readied."""
        ...

    def orphaned_database(self, database: str, error: Exception) -> None:
        """Record that a failed signup left a database behind."""
        ...

    def tenant_deactivated(self, tenant_id: str, forgotten_emails: int) -> None:
        """Record that a tenant was deactivated and its cached logins dropped."""
        ...

    def company_created(self, tenant_id: str, company_id: str) -> None:
        """Record that a company was created inside a tenant."""
        ...

    def user_created(self, tenant_id: str, user_id: str) -> None:
        """Record that a user was created inside a tenant."""
        ...

    def company_switched(self, tenant_id: str, user_id: str, company_id: str) -> None:
        """Record that a user changed their active company."""
        ...

    def with_context(self, context: ObservationContext) -> TenantProvisioningProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantProvisioningProbe:
    """Default implementation of TenantProvisioningProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantProvisioningProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantProvisioningProbe(logger=self._logger, context=context)

    def tenant_registered(self, tenant_id: str, database: str, source: str) -> None:
        """Record that a tenant was registered and its database is ready."""
        self._logger.info(
            "tenant_registered",
            tenant_id=tenant_id,
            database=database,
            source=source,
            **self._get_context_kwargs(),
        )

    def duplicate_tenant(self, tax_id: str) -> None:
        """Record that signup was rejected for an existing tax id."""
        self._logger.warning(
            "duplicate_tenant",
            tax_id=tax_id,
            **self._get_context_kwargs(),
        )

    def pool_entry_unusable(self, name: str, error: Exception) -> None:
        """Record that a claimed entry could not be renamed and was released."""
        self._logger.error(
            "pool_entry_unusable",
            database=name,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def signup_rolled_back(
        self, tenant_id: str, database: str, error: Exception
    ) -> None:
        """Record that signup failed after its database was readied."""
        self._logger.error(
            "signup_rolled_back",
            tenant_id=tenant_id,
            database=database,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def orphaned_database(self, database: str, error: Exception) -> None:
        """Record that a failed signup left a database behind."""
        self._logger.critical(
            "orphaned_database",
            database=database,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def tenant_deactivated(self, tenant_id: str, forgotten_emails: int) -> None:
        """Record that a tenant was deactivated and its cached logins dropped."""
        self._logger.info(
            "tenant_deactivated",
            tenant_id=tenant_id,
            forgotten_emails=forgotten_emails,
            **self._get_context_kwargs(),
        )

    def company_created(self, tenant_id: str, company_id: str) -> None:
        """Record that a company was created inside a tenant."""
        self._logger.info(
            "company_created",
            tenant_id=tenant_id,
            company_id=company_id,
            **self._get_context_kwargs(),
        )

    def user_created(self, tenant_id: str, user_id: str) -> None:
        """Record that a user was created inside a tenant."""
        self._logger.info(
            "tenant_user_created",
            tenant_id=tenant_id,
            user_id=user_id,
            **self._get_context_kwargs(),
        )

    def company_switched(self, tenant_id: str, user_id: str, company_id: str) -> None:
        """Record that a user changed their active company."""
        self._logger.info(
            "company_switched",
            tenant_id=tenant_id,
            user_id=user_id,
            company_id=company_id,
            **self._get_context_kwargs(),
        )
