"""Application-level value objects for the tenancy bounded context."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ResolvedCredential:
    """The tenant and user an email and password pair belongs to.

    Carries only identifiers and display data, so it is safe to cache.
    """

    tenant_id: str
    user_id: str
    email: str
    name: str
    company_id: str | None = None

    def to_cache(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> ResolvedCredential:
        """Rebuild from a cached payload.

        Raises:
            KeyError: If a required field is missing
        """
        return cls(
            tenant_id=str(data["tenant_id"]),
            user_id=str(data["user_id"]),
            email=str(data["email"]),
            name=str(data["name"]),
            company_id=data.get("company_id"),
        )


@dataclass
class BatchSummary:
    """Per-tenant outcome of a batch command.

    One tenant's failure is recorded here instead of aborting the batch.
    """

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: dict[str, str] = field(default_factory=dict)

    def record_success(self, key: str) -> None:
        self.processed += 1
        self.succeeded += 1

    def record_failure(self, key: str, error: Exception) -> None:
        self.processed += 1
        self.failed += 1
        self.errors[key] = str(error)


@dataclass
class BackfillSummary(BatchSummary):
    """Batch summary of a lookup repopulation run."""

    mappings_written: int = 0
    users_written: int = 0
    skipped: int = 0
