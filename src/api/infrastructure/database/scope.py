"""Company scope carried by a tenant database session.

The scope lives in ``session.info`` so the ORM execute hook and the
repositories built on the session agree on it without passing it around.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from infrastructure.database.exceptions import CompanyScopeConflictError

COMPANY_SCOPE_KEY = "company_id"

# Execution option that turns the automatic company predicate off for one statement
SKIP_COMPANY_SCOPE = "skip_company_scope"


def bind_company_scope(session: AsyncSession | Session, company_id: str) -> None:
    """Attach a company scope to a session. Rebinding the same company is a no-op.

    Raises:
        CompanyScopeConflictError: If the session is scoped to another company
    """
    current = session.info.get(COMPANY_SCOPE_KEY)
    if current is not None and current != company_id:
        raise CompanyScopeConflictError(current, company_id)
    session.info[COMPANY_SCOPE_KEY] = company_id


def company_scope_of(session: AsyncSession | Session) -> str | None:
    return session.info.get(COMPANY_SCOPE_KEY)
