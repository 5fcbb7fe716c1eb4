"""HTTP routes for login resolution, tenant signup and company routing."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from tenancy.application.services import (
    CredentialResolver,
    LookupIndexMaintainer,
    TenantProvisioningService,
)
from tenancy.dependencies import (
    get_credential_resolver,
    get_lookup_index,
    get_tenant_provisioning_service,
)
from tenancy.domain.value_objects import CompanyId
from tenancy.ports.exceptions import DuplicateTenantError, InvalidCredentialsError
from tenancy.presentation.models import (
    CompanyTenantResponse,
    CreateTenantRequest,
    LoginRequest,
    LoginResponse,
    TenantResponse,
)

router = APIRouter(tags=["tenancy"])


@router.post("/auth/login")
async def login(
    request: LoginRequest,
    resolver: Annotated[CredentialResolver, Depends(get_credential_resolver)],
) -> LoginResponse:
    """Resolve an email and password to the tenant and user they belong to.

    Raises:
        HTTPException: 401 with a fixed message for any mismatch
    """
    try:
        resolved = await resolver.authenticate(request.email, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        ) from e
    return LoginResponse.from_resolution(resolved)


@router.post("/tenants", status_code=status.HTTP_201_CREATED)
async def create_tenant(
    request: CreateTenantRequest,
    service: Annotated[
        TenantProvisioningService, Depends(get_tenant_provisioning_service)
    ],
) -> TenantResponse:
    """Register a tenant and ready its database.

    Raises:
        HTTPException: 409 if the tax id is already registered
    """
    try:
        tenant = await service.register_tenant(
            name=request.name,
            tax_id=request.tax_id,
            email=request.email,
            phone=request.phone,
        )
    except DuplicateTenantError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A tenant with this tax id already exists",
        ) from e
    return TenantResponse.from_domain(tenant)


@router.get("/companies/{company_id}/tenant")
async def get_company_tenant(
    company_id: str,
    lookup_index: Annotated[LookupIndexMaintainer, Depends(get_lookup_index)],
) -> CompanyTenantResponse:
    """Find the tenant hosting a company.

    Raises:
        HTTPException: 400 if the company id is invalid
        HTTPException: 404 if the company is not mapped
    """
    try:
        company_id_obj = CompanyId.from_string(company_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid company ID format: {e}",
        ) from e

    tenant_id = await lookup_index.lookup_tenant_for_company(company_id_obj)
    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {company_id} not found",
        )
    return CompanyTenantResponse(company_id=company_id, tenant_id=tenant_id.value)
