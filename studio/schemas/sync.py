from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import Field, TypeAdapter

from studio.schemas.base import CamelModel

AttendanceStatus = Literal["PRESENT", "ABSENT", "LATE", "EXCUSED"]
PaymentMethod = Literal["CASH", "CARD", "BANK_TRANSFER"]


class AttendanceSyncRequest(CamelModel):
    session_id: UUID
    student_id: UUID
    status: AttendanceStatus
    timestamp: datetime


class PaymentSyncRequest(CamelModel):
    student_id: UUID
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_type: str = Field(min_length=1, max_length=50)
    payment_method: PaymentMethod
    notes: str | None = Field(default=None, max_length=2000)
    timestamp: datetime
    client_event_id: str | None = Field(default=None, min_length=1, max_length=100)


class AttendanceBatchItem(AttendanceSyncRequest):
    kind: Literal["attendance"]


class PaymentBatchItem(PaymentSyncRequest):
    kind: Literal["payment"]


BatchItem = Annotated[Union[AttendanceBatchItem, PaymentBatchItem], Field(discriminator="kind")]
batch_item_adapter: TypeAdapter[AttendanceBatchItem | PaymentBatchItem] = TypeAdapter(BatchItem)


class AttendanceSyncResponse(CamelModel):
    message: str
    applied: bool
    stale: bool = False
    attendance_id: UUID | None = None


class PaymentRecordResponse(CamelModel):
    id: UUID
    student_id: UUID
    amount: Decimal
    payment_type: str
    payment_method: str
    status: str
    paid_date: datetime | None = None
    due_date: datetime
    notes: str | None = None
    client_event_id: str | None = None


class PaymentSyncResponse(CamelModel):
    message: str
    duplicate: bool = False
    payment: PaymentRecordResponse


class BatchSyncRequest(CamelModel):
    # Items are validated one by one so a malformed event only rejects itself.
    events: list[dict[str, Any]] = Field(min_length=1)


class BatchEventOutcome(CamelModel):
    index: int
    kind: str | None = None
    status: Literal["accepted", "rejected", "error"]
    applied: bool | None = None
    duplicate: bool | None = None
    record_id: UUID | None = None
    error: str | None = None
    message: str | None = None


class BatchSyncResponse(CamelModel):
    results: list[BatchEventOutcome]
    accepted: int
    rejected: int
