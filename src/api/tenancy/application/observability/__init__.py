"""Domain probes for tenancy application services."""

from tenancy.application.observability.context_switcher_probe import (
    ContextSwitcherProbe,
    DefaultContextSwitcherProbe,
)
from tenancy.application.observability.credential_resolver_probe import (
    CredentialResolverProbe,
    DefaultCredentialResolverProbe,
)
from tenancy.application.observability.database_lifecycle_probe import (
    DatabaseLifecycleProbe,
    DefaultDatabaseLifecycleProbe,
)
from tenancy.application.observability.lookup_index_probe import (
    DefaultLookupIndexProbe,
    LookupIndexProbe,
)
from tenancy.application.observability.pool_provisioner_probe import (
    DefaultPoolProvisionerProbe,
    PoolProvisionerProbe,
)
from tenancy.application.observability.tenant_provisioning_probe import (
    DefaultTenantProvisioningProbe,
    TenantProvisioningProbe,
)

__all__ = [
    "ContextSwitcherProbe",
    "CredentialResolverProbe",
    "DatabaseLifecycleProbe",
    "DefaultContextSwitcherProbe",
    "DefaultCredentialResolverProbe",
    "DefaultDatabaseLifecycleProbe",
    "DefaultLookupIndexProbe",
    "DefaultPoolProvisionerProbe",
    "DefaultTenantProvisioningProbe",
    "LookupIndexProbe",
    "PoolProvisionerProbe",
    "TenantProvisioningProbe",
]
