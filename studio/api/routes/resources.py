from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.auth import AuthContext, require_staff
from studio.core.db import get_db_session
from studio.core.limits import LimitGuard, get_limit_guard
from studio.core.resources import create_student, create_training_session
from studio.schemas.resources import (
    StudentCreateRequest,
    StudentResponse,
    TrainingSessionCreateRequest,
    TrainingSessionResponse,
)

router = APIRouter(tags=["resources"])


@router.post("/students", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def add_student(
    payload: StudentCreateRequest,
    auth: AuthContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
    guard: LimitGuard = Depends(get_limit_guard),
) -> StudentResponse:
    student = await create_student(session, guard, auth.organization_id, payload)
    return StudentResponse.model_validate(student)


@router.post("/sessions", response_model=TrainingSessionResponse, status_code=status.HTTP_201_CREATED)
async def add_training_session(
    payload: TrainingSessionCreateRequest,
    auth: AuthContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
    guard: LimitGuard = Depends(get_limit_guard),
) -> TrainingSessionResponse:
    training_session = await create_training_session(session, guard, auth.organization_id, payload)
    return TrainingSessionResponse.model_validate(training_session)
