from __future__ import annotations

from contextvars import ContextVar
from typing import Final
from uuid import UUID

_CURRENT_ORGANIZATION_ID: Final[ContextVar[UUID | None]] = ContextVar(
    "current_organization_id",
    default=None,
)


def set_current_organization_id(organization_id: UUID | None) -> object:
    return _CURRENT_ORGANIZATION_ID.set(organization_id)


def get_current_organization_id() -> UUID | None:
    return _CURRENT_ORGANIZATION_ID.get()


def reset_current_organization_id(token: object) -> None:
    _CURRENT_ORGANIZATION_ID.reset(token)
