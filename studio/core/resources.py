from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.limits import LimitGuard
from studio.core.repositories.students import StudentRepository
from studio.core.repositories.training_sessions import TrainingSessionRepository
from studio.core.tiers import MAX_SESSIONS_PER_MONTH, MAX_STUDENTS
from studio.models.student import Student
from studio.models.training_session import TrainingSession
from studio.schemas.resources import StudentCreateRequest, TrainingSessionCreateRequest


async def create_student(
    session: AsyncSession,
    guard: LimitGuard,
    organization_id: UUID,
    payload: StudentCreateRequest,
) -> Student:
    # Limit check and insert share one transaction; the organization row lock
    # taken by enforce() serializes concurrent creators until commit.
    try:
        await guard.enforce(organization_id, MAX_STUDENTS)
        student = await StudentRepository(session).create(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            status="ACTIVE",
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return student


async def create_training_session(
    session: AsyncSession,
    guard: LimitGuard,
    organization_id: UUID,
    payload: TrainingSessionCreateRequest,
) -> TrainingSession:
    try:
        # Monthly quota of the month the session is scheduled in.
        await guard.enforce(organization_id, MAX_SESSIONS_PER_MONTH, now=payload.start_time)
        training_session = await TrainingSessionRepository(session).create(
            title=payload.title,
            start_time=payload.start_time,
            end_time=payload.end_time,
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return training_session
