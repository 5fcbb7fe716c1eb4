"""Domain-Oriented Observability for tenancy infrastructure.

Probes for repository, script runner and isolation events.
"""

from tenancy.infrastructure.observability.isolation_probe import (
    DefaultIsolationProbe,
    IsolationProbe,
)
from tenancy.infrastructure.observability.migration_runner_probe import (
    DefaultMigrationRunnerProbe,
    MigrationRunnerProbe,
)
from tenancy.infrastructure.observability.repository_probe import (
    DefaultPoolRepositoryProbe,
    DefaultTenantRepositoryProbe,
    PoolRepositoryProbe,
    TenantRepositoryProbe,
)

__all__ = [
    "DefaultIsolationProbe",
    "DefaultMigrationRunnerProbe",
    "DefaultPoolRepositoryProbe",
    "DefaultTenantRepositoryProbe",
    "IsolationProbe",
    "MigrationRunnerProbe",
    "PoolRepositoryProbe",
    "TenantRepositoryProbe",
]
