"""Exceptions for the tenancy bounded context.

Provisioning failures live in ``infrastructure.database.exceptions`` because
they are raised by server-level code shared with batch commands. Everything
a request handler has to distinguish lives here.
"""


class TenantContextConflictError(Exception):
    """Raised when activating a tenant while a different one is active.

    This is a caller bug. Switching silently would let queries meant for
    one tenant run against another tenant's database.
    """

    def __init__(self, active_tenant_id: str, requested_tenant_id: str):
        super().__init__(
            f"Tenant {active_tenant_id} is active; cannot activate "
            f"{requested_tenant_id} without deactivating first"
        )
        self.active_tenant_id = active_tenant_id
        self.requested_tenant_id = requested_tenant_id


class TenantUnavailableError(Exception):
    """Raised when a tenant's database is missing or cannot be reached."""

    def __init__(self, tenant_id: str, reason: str = "database does not exist"):
        super().__init__(f"Tenant {tenant_id} is unavailable: {reason}")
        self.tenant_id = tenant_id
        self.reason = reason


class TenantNotFoundError(Exception):
    """Raised when a tenant id is not present in the central registry."""

    pass


class DuplicateTenantError(Exception):
    """Raised when registering a tenant whose tax id is already registered."""

    pass


class InvalidCredentialsError(Exception):
    """Raised when no tenant accepts an email and password pair.

    The message never reveals whether the email exists.
    """

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class IsolationViolationError(Exception):
    """Raised when a company-scoped operation crosses a company boundary.

    This is an integrity failure. It stops the current operation and is
    never downgraded to a warning.
    """

    def __init__(self, expected_company_id: str, actual_company_id: str | None, table: str):
        super().__init__(
            f"Row from {table} belongs to company {actual_company_id}, "
            f"expected {expected_company_id}"
        )
        self.expected_company_id = expected_company_id
        self.actual_company_id = actual_company_id
        self.table = table


class MissingCompanyScopeError(Exception):
    """Raised when a company-scoped repository is built without a company."""

    pass


class CompanyNotFoundError(Exception):
    """Raised when a company id does not exist in the active tenant."""

    pass


class TenantUserNotFoundError(Exception):
    """Raised when no user with the email exists in the active tenant."""

    pass
