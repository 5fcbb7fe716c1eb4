"""Company isolation inside a shared-schema tenant database.

Two independent layers keep one company's rows away from another:

1. A ``do_orm_execute`` hook appends ``company_id = :scope`` to every ORM
   SELECT touching a company-scoped model whenever the session carries a
   company scope.
2. ``CompanyScopedRepository`` re-checks every row it returns and refuses
   writes carrying another company's id, so a query that slipped past the
   hook still cannot leak.
"""

from __future__ import annotations

from typing import Any, Generic, Mapping, TypeVar

from sqlalchemy import ForeignKey, String, event, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import (
    Mapped,
    ORMExecuteState,
    Session,
    declared_attr,
    mapped_column,
    with_loader_criteria,
)
from ulid import ULID

from infrastructure.database.exceptions import CompanyScopeConflictError
from infrastructure.database.scope import (
    SKIP_COMPANY_SCOPE,
    bind_company_scope,
    company_scope_of,
)
from tenancy.infrastructure.observability import (
    DefaultIsolationProbe,
    IsolationProbe,
)
from tenancy.ports.exceptions import IsolationViolationError, MissingCompanyScopeError


class CompanyScopedMixin:
    """Marks a tenant table whose rows belong to exactly one company."""

    @declared_attr
    def company_id(cls) -> Mapped[str]:
        return mapped_column(
            String(26), ForeignKey("companies.id"), nullable=False, index=True
        )


@event.listens_for(Session, "do_orm_execute")
def _apply_company_scope(execute_state: ORMExecuteState) -> None:
    if (
        not execute_state.is_select
        or execute_state.is_column_load
        or execute_state.is_relationship_load
    ):
        return
    if execute_state.execution_options.get(SKIP_COMPANY_SCOPE, False):
        return

    company_id = company_scope_of(execute_state.session)
    if company_id is None:
        return

    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(
            CompanyScopedMixin,
            lambda cls: cls.company_id == company_id,
            include_aliases=True,
        )
    )


ModelT = TypeVar("ModelT", bound=CompanyScopedMixin)


class CompanyScopedRepository(Generic[ModelT]):
    """Repository over one company-scoped model, bound to one company.

    Subclasses set ``model``; it can also be passed to the constructor.
    Models are expected to expose a string ``id`` primary key.
    """

    model: type[ModelT]

    def __init__(
        self,
        session: AsyncSession,
        company_id: str | None,
        model: type[ModelT] | None = None,
        probe: IsolationProbe | None = None,
    ) -> None:
        if not company_id:
            raise MissingCompanyScopeError(
                "Company-scoped repositories require a company id"
            )
        if model is not None:
            self.model = model
        self._session = session
        self._company_id = company_id
        self._probe = probe or DefaultIsolationProbe()
        try:
            bind_company_scope(session, company_id)
        except CompanyScopeConflictError as e:
            raise IsolationViolationError(
                e.bound_company_id, e.requested_company_id, table=self._table
            ) from e

    @property
    def company_id(self) -> str:
        return self._company_id

    @property
    def _table(self) -> str:
        return self.model.__tablename__  # type: ignore[attr-defined]

    async def find_by_id(self, record_id: str) -> ModelT | None:
        stmt = select(self.model).where(self.model.id == record_id)  # type: ignore[attr-defined]
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            self._verify(row, self._company_id)
        return row

    async def list(self, filters: Mapping[str, Any] | None = None) -> list[ModelT]:
        """List rows of the bound company matching equality filters."""
        filters = self._checked_filters(filters, self._company_id)
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .order_by(self.model.id)  # type: ignore[attr-defined]
        )
        result = await self._session.execute(stmt)
        return self._verify_all(result.scalars().all(), self._company_id)

    async def list_for_company(
        self, company_id: str, filters: Mapping[str, Any] | None = None
    ) -> list[ModelT]:
        """Administrative cross-company read with an explicit company id.

        Bypasses the automatic predicate, filters explicitly and verifies
        every returned row against ``company_id``.
        """
        if not company_id:
            raise MissingCompanyScopeError("An explicit company id is required")
        filters = self._checked_filters(filters, company_id)
        self._probe.cross_company_query(self._table, company_id)

        stmt = (
            select(self.model)
            .where(self.model.company_id == company_id)
            .filter_by(**filters)
            .order_by(self.model.id)  # type: ignore[attr-defined]
            .execution_options(**{SKIP_COMPANY_SCOPE: True})
        )
        result = await self._session.execute(stmt)
        return self._verify_all(result.scalars().all(), company_id)

    async def create(self, data: Mapping[str, Any]) -> ModelT:
        """Insert a row stamped with the bound company id.

        Raises:
            IsolationViolationError: If ``data`` names another company
        """
        self._reject_foreign_company(data)
        values = {**data, "company_id": self._company_id}
        values.setdefault("id", str(ULID()))

        row = self.model(**values)
        self._session.add(row)
        await self._session.flush()
        return row

    async def update(self, record_id: str, data: Mapping[str, Any]) -> ModelT | None:
        """Update a row of the bound company.

        Returns:
            The updated row, or None if no such row is visible to this company

        Raises:
            IsolationViolationError: If ``data`` tries to move the row to another company
        """
        self._reject_foreign_company(data)
        row = await self.find_by_id(record_id)
        if row is None:
            return None

        for key, value in data.items():
            if key in ("id", "company_id"):
                continue
            setattr(row, key, value)
        await self._session.flush()
        return row

    def _checked_filters(
        self, filters: Mapping[str, Any] | None, company_id: str
    ) -> dict[str, Any]:
        filters = dict(filters or {})
        requested = filters.pop("company_id", company_id)
        if requested != company_id:
            self._probe.isolation_violation(self._table, company_id, requested)
            raise IsolationViolationError(company_id, requested, self._table)
        return filters

    def _reject_foreign_company(self, data: Mapping[str, Any]) -> None:
        requested = data.get("company_id")
        if requested is not None and requested != self._company_id:
            self._probe.isolation_violation(self._table, self._company_id, requested)
            raise IsolationViolationError(self._company_id, requested, self._table)

    def _verify(self, row: ModelT, company_id: str) -> None:
        if row.company_id != company_id:
            self._probe.isolation_violation(self._table, company_id, row.company_id)
            raise IsolationViolationError(company_id, row.company_id, self._table)

    def _verify_all(self, rows: Any, company_id: str) -> list[ModelT]:
        rows = list(rows)
        for row in rows:
            self._verify(row, company_id)
        return rows
