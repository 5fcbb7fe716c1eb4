"""Database infrastructure shared by the central registry and tenant databases."""

from infrastructure.database.exceptions import (
    CompanyScopeConflictError,
    DatabaseConnectionError,
    DatabaseCreationError,
    DatabaseError,
    MigrationError,
    ProvisioningError,
)

__all__ = [
    "CompanyScopeConflictError",
    "DatabaseConnectionError",
    "DatabaseCreationError",
    "DatabaseError",
    "MigrationError",
    "ProvisioningError",
]
