from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from studio.core.errors import ValidationError
from studio.core.tiers import (
    MAX_PAYMENTS_PER_MONTH,
    MAX_SESSIONS_PER_MONTH,
    MAX_STUDENTS,
    MAX_TRAINERS,
)
from studio.models.payment import Payment
from studio.models.student import Student
from studio.models.training_session import TrainingSession
from studio.models.user import TRAINER_CLASS_ROLES, User


def current_billing_period(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of the calendar month (UTC) containing ``now``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)

    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class UsageAggregator:
    """Counts an organization's current consumption of a limited resource.

    Results are never cached; limit decisions need the state as of now.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def usage_statement(
        self,
        organization_id: UUID,
        limit_key: str,
        now: datetime | None = None,
    ) -> Select[tuple[int]]:
        if limit_key == MAX_STUDENTS:
            return select(func.count(Student.id)).where(
                Student.organization_id == organization_id,
                Student.status != "ARCHIVED",
            )

        if limit_key == MAX_TRAINERS:
            return select(func.count(User.id)).where(
                User.organization_id == organization_id,
                User.role.in_(TRAINER_CLASS_ROLES),
            )

        if limit_key == MAX_SESSIONS_PER_MONTH:
            start, end = current_billing_period(now)
            return select(func.count(TrainingSession.id)).where(
                TrainingSession.organization_id == organization_id,
                TrainingSession.start_time >= start,
                TrainingSession.start_time < end,
            )

        if limit_key == MAX_PAYMENTS_PER_MONTH:
            start, end = current_billing_period(now)
            return select(func.count(Payment.id)).where(
                Payment.organization_id == organization_id,
                Payment.created_at >= start,
                Payment.created_at < end,
            )

        raise ValidationError(f"Unknown limit type: {limit_key}")

    async def current_usage(
        self,
        organization_id: UUID,
        limit_key: str,
        now: datetime | None = None,
    ) -> int:
        stmt = self.usage_statement(organization_id, limit_key, now)
        return int(await self.session.scalar(stmt) or 0)
