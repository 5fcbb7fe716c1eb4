"""Observation context for domain-oriented observability.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable metadata attached to every event a probe emits.

    Attributes:
        request_id: Identifier of the current request or batch run.
        user_id: User performing the operation (if applicable).
        tenant_id: Tenant whose database is being operated on (if applicable).
        company_id: Company scope inside the tenant database (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(request_id="req-123", tenant_id="01J...")
        probe = DefaultDatabaseServerProbe().with_context(context)
    """

    request_id: str | None = None
    user_id: str | None = None
    tenant_id: str | None = None
    company_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Logging kwargs. None values are left out."""
        result = {
            key: value
            for key, value in (
                ("request_id", self.request_id),
                ("user_id", self.user_id),
                ("tenant_id", self.tenant_id),
                ("company_id", self.company_id),
            )
            if value is not None
        }
        result.update(self.extra)
        return result

    def with_tenant(self, tenant_id: str) -> ObservationContext:
        """Same context for another tenant. Drops the company scope."""
        return replace(self, tenant_id=tenant_id, company_id=None)

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        return replace(self, extra={**self.extra, **kwargs})
