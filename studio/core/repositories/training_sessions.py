from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.repositories.base import OrganizationRepository
from studio.models.training_session import TrainingSession


class TrainingSessionRepository(OrganizationRepository[TrainingSession]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=TrainingSession)
