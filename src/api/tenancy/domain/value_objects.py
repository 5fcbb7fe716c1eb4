"""Value objects for the tenancy domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from enum import StrEnum

from ulid import ULID


class TenantStatus(StrEnum):
    """Lifecycle status of a tenant. Tenants are deactivated, never deleted."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class UserStatus(StrEnum):
    """Status of a user account inside a tenant database."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class CompanyStatus(StrEnum):
    """Status of a company inside a tenant database."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class TenantId:
    """Identifier for a Tenant aggregate.

    Uses ULID for sortability and distribution-friendly generation. The
    lowercased value is also the suffix of the tenant's physical database.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> TenantId:
        """Generate a new TenantId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> TenantId:
        """Create TenantId from string value.

        Args:
            value: ULID string

        Returns:
            TenantId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid TenantId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class CompanyId:
    """Identifier for a company (logical sub-tenant inside a tenant database)."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> CompanyId:
        """Generate a new CompanyId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> CompanyId:
        """Create CompanyId from string value.

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid CompanyId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class UserId:
    """Identifier for a user stored inside a tenant database."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> UserId:
        """Generate a new UserId using ULID."""
        return cls(value=str(ULID()))


def normalize_email(email: str) -> str:
    """Canonical form used for every email comparison and cache key."""
    return email.strip().lower()


@dataclass(frozen=True)
class ScriptGroup:
    """One directory of SQL scripts, applied in lexical order in one transaction.

    Attributes:
        name: Path of the directory relative to the scripts root (posix form)
        scripts: Script files, lexically ordered
        root: The scripts root the name is relative to
    """

    name: str
    scripts: tuple[Path, ...]
    root: Path

    def script_key(self, script: Path) -> str:
        """Ledger key of a script: its posix path relative to the root."""
        return script.relative_to(self.root).as_posix()


@dataclass
class MigrationReport:
    """Outcome of applying a script plan to one database."""

    database_name: str
    applied: list[str] = field(default_factory=list)
    skipped: int = 0

    @property
    def nothing_to_migrate(self) -> bool:
        return not self.applied
