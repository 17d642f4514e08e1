from __future__ import annotations

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from studio.models.base import OrganizationScopedBase

TRAINER_CLASS_ROLES: tuple[str, ...] = ("ADMIN", "TRAINER")


class User(OrganizationScopedBase):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("organization_id", "clerk_user_id", name="uq_users_organization_clerk_user"),
    )

    clerk_user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="STUDENT")
