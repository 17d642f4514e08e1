from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from studio.schemas.base import CamelModel


class StudentCreateRequest(CamelModel):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    email: str | None = Field(default=None, max_length=255)


class StudentResponse(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    email: str | None = None
    status: str


class TrainingSessionCreateRequest(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def _end_after_start(self) -> TrainingSessionCreateRequest:
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class TrainingSessionResponse(CamelModel):
    id: UUID
    title: str
    start_time: datetime
    end_time: datetime
