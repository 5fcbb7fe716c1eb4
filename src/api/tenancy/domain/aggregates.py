"""Aggregates and entities of the tenancy domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from ulid import ULID

from tenancy.domain.exceptions import CompanyAccessDeniedError
from tenancy.domain.value_objects import (
    CompanyId,
    CompanyStatus,
    TenantId,
    TenantStatus,
    UserId,
    UserStatus,
    normalize_email,
)


@dataclass
class Tenant:
    """A legal entity owning exactly one physical database.

    Business rules:
    - The id is immutable and determines the database name
    - Tax ids are unique across the registry
    - Tenants are deactivated, never deleted
    """

    id: TenantId
    name: str
    tax_id: str
    database_name: str
    status: TenantStatus = TenantStatus.ACTIVE
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None

    @classmethod
    def create(
        cls,
        name: str,
        tax_id: str,
        database_prefix: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> Tenant:
        """Factory method for creating a new tenant.

        Args:
            name: Display name of the tenant
            tax_id: Registration number, unique across tenants
            database_prefix: Prefix of physical tenant database names
            email: Contact email
            phone: Contact phone

        Returns:
            A new active Tenant whose database name derives from its id
        """
        tenant_id = TenantId.generate()
        return cls(
            id=tenant_id,
            name=name,
            tax_id=tax_id,
            database_name=database_name_for(tenant_id, database_prefix),
            email=normalize_email(email) if email else None,
            phone=phone,
            created_at=datetime.now(UTC),
        )

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE

    def deactivate(self) -> None:
        self.status = TenantStatus.INACTIVE


def database_name_for(tenant_id: TenantId, prefix: str) -> str:
    """Physical database name of a tenant: ``<prefix><id lowercased>``."""
    return f"{prefix}{tenant_id.value.lower()}"


@dataclass
class PooledDatabase:
    """A pre-created, pre-migrated database waiting to be claimed.

    An entry is free until claimed, then assigned exactly once.
    """

    id: str
    name: str
    created_at: datetime
    assigned: bool = False
    tenant_id: TenantId | None = None
    assigned_at: datetime | None = None

    @classmethod
    def create(cls, prefix: str) -> PooledDatabase:
        """Create a free entry with a fresh ``<prefix><ulid>`` name."""
        ulid = str(ULID())
        return cls(
            id=ulid,
            name=f"{prefix}{ulid.lower()}",
            created_at=datetime.now(UTC),
        )


@dataclass(frozen=True)
class CompanyTenantMapping:
    """Durable routing entry from a company to the tenant that hosts it."""

    company_id: CompanyId
    tenant_id: TenantId


@dataclass(frozen=True)
class UserLookup:
    """Durable routing entry from an email to one tenant where it has an account."""

    email: str
    tenant_id: TenantId
    user_id: UserId
    company_id: CompanyId | None = None
    tax_id: str | None = None
    status: UserStatus = UserStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


@dataclass
class Company:
    """A company hosted inside a tenant database."""

    id: CompanyId
    legal_name: str
    tax_id: str
    status: CompanyStatus = CompanyStatus.ACTIVE

    @classmethod
    def create(cls, legal_name: str, tax_id: str) -> Company:
        return cls(id=CompanyId.generate(), legal_name=legal_name, tax_id=tax_id)

    @property
    def is_active(self) -> bool:
        return self.status == CompanyStatus.ACTIVE

    def deactivate(self) -> None:
        """Soft-delete the company. Its rows stay in place."""
        self.status = CompanyStatus.INACTIVE


@dataclass
class TenantUser:
    """A user account stored inside a tenant database.

    The password hash is bcrypt; plaintext never reaches this object.
    """

    id: UserId
    email: str
    name: str
    password_hash: str
    status: UserStatus = UserStatus.ACTIVE
    active_company_id: CompanyId | None = None
    company_ids: list[CompanyId] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        email: str,
        name: str,
        password_hash: str,
        company_id: CompanyId | None = None,
    ) -> TenantUser:
        return cls(
            id=UserId.generate(),
            email=normalize_email(email),
            name=name,
            password_hash=password_hash,
            active_company_id=company_id,
            company_ids=[company_id] if company_id else [],
        )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def deactivate(self) -> None:
        self.status = UserStatus.INACTIVE

    def grant_company(self, company_id: CompanyId) -> None:
        """Allow the user to act for a company. Granting twice is a no-op."""
        if company_id not in self.company_ids:
            self.company_ids.append(company_id)
        if self.active_company_id is None:
            self.active_company_id = company_id

    def switch_company(self, company_id: CompanyId) -> None:
        """Make ``company_id`` the company the user currently acts for.

        Raises:
            CompanyAccessDeniedError: If the user is not a member of the company
        """
        if company_id not in self.company_ids:
            raise CompanyAccessDeniedError(self.id.value, company_id.value)
        self.active_company_id = company_id
