"""create tenant registry tables

Create the central registry: tenants, the warm pool of pre-migrated
databases, and the two durable lookup tables used to route requests
to a tenant before any tenant database is opened.

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-09-14 10:02:41.118204

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d2b7e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(length=26), nullable=False),  # ULID
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("tax_id", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("database_name", sa.String(length=63), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tenants_tax_id", "tenants", ["tax_id"], unique=True)
    op.create_index(
        "ix_tenants_database_name", "tenants", ["database_name"], unique=True
    )

    op.create_table(
        "pooled_databases",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("name", sa.String(length=63), nullable=False),
        sa.Column("assigned", sa.Boolean(), nullable=False),
        sa.Column("tenant_id", sa.String(length=26), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pooled_databases_name", "pooled_databases", ["name"], unique=True)
    # Claims scan free entries oldest first
    op.create_index(
        "ix_pooled_databases_assigned_created_at",
        "pooled_databases",
        ["assigned", "created_at"],
    )

    op.create_table(
        "company_tenant_mappings",
        sa.Column("company_id", sa.String(length=26), nullable=False),
        sa.Column("tenant_id", sa.String(length=26), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("company_id"),
    )
    op.create_index(
        "ix_company_tenant_mappings_tenant_id",
        "company_tenant_mappings",
        ["tenant_id"],
    )

    op.create_table(
        "users_lookup",
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("tenant_id", sa.String(length=26), nullable=False),
        sa.Column("user_id", sa.String(length=26), nullable=False),
        sa.Column("company_id", sa.String(length=26), nullable=True),
        sa.Column("tax_id", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("email", "tenant_id"),
    )
    op.create_index("ix_users_lookup_email_status", "users_lookup", ["email", "status"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_users_lookup_email_status", table_name="users_lookup")
    op.drop_table("users_lookup")
    op.drop_index(
        "ix_company_tenant_mappings_tenant_id", table_name="company_tenant_mappings"
    )
    op.drop_table("company_tenant_mappings")
    op.drop_index("ix_pooled_databases_assigned_created_at", table_name="pooled_databases")
    op.drop_index("ix_pooled_databases_name", table_name="pooled_databases")
    op.drop_table("pooled_databases")
    op.drop_index("ix_tenants_database_name", table_name="tenants")
    op.drop_index("ix_tenants_tax_id", table_name="tenants")
    op.drop_table("tenants")
