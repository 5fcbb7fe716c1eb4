"""Pydantic models for tenancy API requests and responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from tenancy.application.value_objects import ResolvedCredential
from tenancy.domain.aggregates import Tenant


class LoginRequest(BaseModel):
    """Request model for resolving a login to its tenant."""

    email: str = Field(..., description="User email", min_length=3, max_length=320)
    password: str = Field(..., description="User password", min_length=1, max_length=72)


class LoginResponse(BaseModel):
    """Response model for a resolved login."""

    tenant_id: str = Field(..., description="Tenant ID (ULID format)")
    user_id: str = Field(..., description="User ID inside the tenant")
    email: str
    name: str
    company_id: str | None = Field(None, description="Company the user acts for")

    @classmethod
    def from_resolution(cls, resolved: ResolvedCredential) -> LoginResponse:
        return cls(
            tenant_id=resolved.tenant_id,
            user_id=resolved.user_id,
            email=resolved.email,
            name=resolved.name,
            company_id=resolved.company_id,
        )


class CreateTenantRequest(BaseModel):
    """Request model for registering a tenant."""

    name: str = Field(..., description="Tenant name", min_length=1, max_length=255)
    tax_id: str = Field(..., description="Registration number", min_length=1, max_length=32)
    email: str | None = Field(None, max_length=320)
    phone: str | None = Field(None, max_length=32)


class TenantResponse(BaseModel):
    """Response model for tenant."""

    id: str = Field(..., description="Tenant ID (ULID format)")
    name: str
    tax_id: str
    status: str
    database_name: str

    @classmethod
    def from_domain(cls, tenant: Tenant) -> TenantResponse:
        """Convert domain Tenant aggregate to API response."""
        return cls(
            id=tenant.id.value,
            name=tenant.name,
            tax_id=tenant.tax_id,
            status=tenant.status.value,
            database_name=tenant.database_name,
        )


class CompanyTenantResponse(BaseModel):
    """Response model for a company to tenant lookup."""

    company_id: str
    tenant_id: str
