from __future__ import annotations

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.context import get_current_organization_id
from studio.core.db import apply_rls_organization_context
from studio.models.base import OrganizationScopedBase

ModelT = TypeVar("ModelT", bound=OrganizationScopedBase)


class OrganizationContextMissingError(RuntimeError):
    pass


class OrganizationRepository(Generic[ModelT]):
    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    @property
    def organization_id(self) -> UUID:
        organization_id = get_current_organization_id()
        if organization_id is None:
            raise OrganizationContextMissingError("Organization context is missing from the current request")
        return organization_id

    async def _apply_rls(self) -> None:
        await apply_rls_organization_context(self.session, self.organization_id)

    async def create(self, **values: object) -> ModelT:
        await self._apply_rls()
        payload = dict(values)
        payload["organization_id"] = self.organization_id
        instance = self.model(**payload)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

