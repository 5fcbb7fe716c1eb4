"""SQLAlchemy ORM models for the tenancy bounded context.

Central registry tables derive from ``Base`` and are migrated by Alembic.
Tenant tables derive from ``TenantBase`` and mirror the SQL script groups
under ``tenant_migrations``; they are never created from this metadata in
production.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TenantBase, TimestampMixin, utc_now
from tenancy.infrastructure.isolation import CompanyScopedMixin


class TenantModel(Base, TimestampMixin):
    """ORM model for the tenants registry table.

    Note: tax ids and database names are unique across the registry.
    """

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tax_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    database_name: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<TenantModel(id={self.id}, database_name={self.database_name})>"


class PooledDatabaseModel(Base):
    """ORM model for warm pool entries."""

    __tablename__ = "pooled_databases"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    name: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)
    assigned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tenant_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), insert_default=utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_pooled_databases_assigned_created_at", "assigned", "created_at"),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<PooledDatabaseModel(name={self.name}, assigned={self.assigned})>"


class CompanyTenantMappingModel(Base, TimestampMixin):
    """ORM model for durable company to tenant mappings."""

    __tablename__ = "company_tenant_mappings"

    company_id: Mapped[str] = mapped_column(String(26), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )


class UserLookupModel(Base, TimestampMixin):
    """ORM model for the email to tenant user lookup rows."""

    __tablename__ = "users_lookup"

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(26), nullable=False)
    company_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)

    __table_args__ = (Index("ix_users_lookup_email_status", "email", "status"),)


# Tables inside every tenant database


class SchemaMigrationModel(TenantBase):
    """Ledger of SQL scripts applied to a tenant database."""

    __tablename__ = "schema_migrations"

    script: Mapped[str] = mapped_column(String(255), primary_key=True)
    group_name: Mapped[str] = mapped_column(String(255), nullable=False)
    checksum: Mapped[str] = mapped_column(String(64), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), insert_default=utc_now, nullable=False
    )


class CompanyModel(TenantBase, TimestampMixin):
    """ORM model for companies hosted in a tenant database."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    legal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    tax_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)


class UserModel(TenantBase, TimestampMixin):
    """ORM model for users of a tenant database."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    active_company_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("companies.id"), nullable=True
    )


class UserCompanyModel(TenantBase):
    """Companies a user may act for."""

    __tablename__ = "user_companies"

    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    company_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True
    )


class ProcessModel(TenantBase, CompanyScopedMixin, TimestampMixin):
    """Procurement process, the reference company-scoped business table."""

    __tablename__ = "processes"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    number: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="open")
