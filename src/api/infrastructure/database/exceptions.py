"""Database-specific exceptions shared by every bounded context."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    pass


class ProvisioningError(DatabaseError):
    """Base for retryable provisioning failures.

    Carries the database name so batch commands can report which
    physical database failed without parsing messages.
    """

    def __init__(self, message: str, database_name: str | None = None):
        super().__init__(message)
        self.database_name = database_name


class DatabaseCreationError(ProvisioningError):
    """Raised when a physical database cannot be created or renamed."""

    pass


class MigrationError(ProvisioningError):
    """Raised when a schema-change script fails to apply."""

    def __init__(
        self,
        message: str,
        database_name: str | None = None,
        script: str | None = None,
    ):
        super().__init__(message, database_name=database_name)
        self.script = script


class CompanyScopeConflictError(DatabaseError):
    """Raised when a session already scoped to one company is rebound to another."""

    def __init__(self, bound_company_id: str, requested_company_id: str):
        super().__init__(
            f"Session is scoped to company {bound_company_id}; "
            f"cannot rebind it to {requested_company_id}"
        )
        self.bound_company_id = bound_company_id
        self.requested_company_id = requested_company_id
