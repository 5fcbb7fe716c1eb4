"""SQLAlchemy declarative bases shared by the registry and tenant schemas.

Two independent metadata trees exist: one for the central registry database
(migrated with Alembic) and one for the tables living inside every tenant
database (created by the ordered SQL script groups). Keeping them apart means
``Base.metadata`` never mentions a tenant table and Alembic autogenerate
never proposes one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Timezone-aware INSERT/UPDATE default for timestamp columns."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for ORM models stored in the central registry database."""

    type_annotation_map: dict[type, Any] = {}


class TenantBase(DeclarativeBase):
    """Base class for ORM models stored inside each tenant database."""

    type_annotation_map: dict[type, Any] = {}


class TimestampMixin:
    """created_at / updated_at columns, filled on the Python side."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=utc_now,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
