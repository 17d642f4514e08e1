from __future__ import annotations

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from studio.core.context import reset_current_organization_id, set_current_organization_id
from studio.core.repositories.base import OrganizationContextMissingError, OrganizationRepository
from studio.models.student import Student


def test_organization_id_missing_raises() -> None:
    repo = OrganizationRepository(session=Mock(), model=Student)

    with pytest.raises(OrganizationContextMissingError):
        _ = repo.organization_id


@pytest.mark.asyncio
async def test_create_injects_organization_id() -> None:
    organization_id = uuid4()
    token = set_current_organization_id(organization_id)
    try:
        session = Mock()
        session.add = Mock()
        session.flush = AsyncMock()
        session.refresh = AsyncMock()

        repo = OrganizationRepository(session=session, model=Student)
        repo._apply_rls = AsyncMock()

        created = await repo.create(first_name="Ada", last_name="Lovelace", organization_id=uuid4())

        assert created.organization_id == organization_id
        session.add.assert_called_once_with(created)
        session.flush.assert_awaited_once()
        session.refresh.assert_awaited_once_with(created)
    finally:
        reset_current_organization_id(token)


@pytest.mark.asyncio
async def test_create_applies_rls_for_current_organization() -> None:
    organization_id = uuid4()
    token = set_current_organization_id(organization_id)
    try:
        session = Mock()
        session.execute = AsyncMock()
        session.add = Mock()
        session.flush = AsyncMock()
        session.refresh = AsyncMock()

        await OrganizationRepository(session=session, model=Student).create(first_name="Ada", last_name="L")

        _, params = session.execute.await_args.args
        assert params == {"organization_id": str(organization_id)}
    finally:
        reset_current_organization_id(token)
