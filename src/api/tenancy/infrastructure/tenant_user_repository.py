"""Users stored inside a tenant database.

Bound to a session from an activated tenant context; it never touches the
central registry.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.domain.aggregates import TenantUser
from tenancy.domain.value_objects import CompanyId, UserId, UserStatus, normalize_email
from tenancy.infrastructure.models import UserCompanyModel, UserModel
from tenancy.ports.repositories import ITenantUserRepository


class TenantUserRepository(ITenantUserRepository):
    """Repository for the users and user_companies tables of one tenant."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_email(self, email: str) -> TenantUser | None:
        stmt = select(UserModel).where(UserModel.email == normalize_email(email))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return self._to_domain(model, await self._company_ids(model.id))

    async def save(self, user: TenantUser) -> None:
        model = await self._session.get(UserModel, user.id.value)
        if model is None:
            model = UserModel(id=user.id.value)
            self._session.add(model)

        model.email = normalize_email(user.email)
        model.name = user.name
        model.password_hash = user.password_hash
        model.status = user.status.value
        model.active_company_id = (
            user.active_company_id.value if user.active_company_id else None
        )
        await self._session.flush()

        known = set(await self._company_ids(user.id.value))
        for company_id in user.company_ids:
            if company_id.value not in known:
                self._session.add(
                    UserCompanyModel(user_id=user.id.value, company_id=company_id.value)
                )
        await self._session.flush()

    async def list_all(self) -> list[TenantUser]:
        result = await self._session.execute(select(UserModel).order_by(UserModel.id))
        memberships = await self._session.execute(select(UserCompanyModel))
        by_user: dict[str, list[str]] = {}
        for row in memberships.scalars().all():
            by_user.setdefault(row.user_id, []).append(row.company_id)

        return [
            self._to_domain(model, sorted(by_user.get(model.id, [])))
            for model in result.scalars().all()
        ]

    async def _company_ids(self, user_id: str) -> list[str]:
        stmt = (
            select(UserCompanyModel.company_id)
            .where(UserCompanyModel.user_id == user_id)
            .order_by(UserCompanyModel.company_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _to_domain(model: UserModel, company_ids: list[str]) -> TenantUser:
        return TenantUser(
            id=UserId(value=model.id),
            email=model.email,
            name=model.name,
            password_hash=model.password_hash,
            status=UserStatus(model.status),
            active_company_id=(
                CompanyId(value=model.active_company_id)
                if model.active_company_id
                else None
            ),
            company_ids=[CompanyId(value=company_id) for company_id in company_ids],
        )
