"""Application services for the tenancy bounded context."""

from tenancy.application.services.company_service import CompanyService
from tenancy.application.services.context_switcher import (
    ActiveTenant,
    TenantContextSwitcher,
)
from tenancy.application.services.credential_resolver import CredentialResolver
from tenancy.application.services.database_lifecycle import DatabaseLifecycleManager
from tenancy.application.services.lookup_index import LookupIndexMaintainer
from tenancy.application.services.migration_paths import MigrationPathResolver
from tenancy.application.services.pool_provisioner import DatabasePoolProvisioner
from tenancy.application.services.tenant_provisioning import TenantProvisioningService
from tenancy.application.services.user_service import TenantUserService

__all__ = [
    "ActiveTenant",
    "CompanyService",
    "CredentialResolver",
    "DatabaseLifecycleManager",
    "DatabasePoolProvisioner",
    "LookupIndexMaintainer",
    "MigrationPathResolver",
    "TenantContextSwitcher",
    "TenantProvisioningService",
    "TenantUserService",
]
