"""Reconciliation of events recorded by disconnected kiosk and mobile clients.

Attendance is keyed by ``(session_id, student_id)`` and written with a single
``INSERT ... ON CONFLICT DO UPDATE`` guarded by ``(event_timestamp, status)``,
so replays are harmless and out-of-order delivery converges on the newest
event, with the status breaking timestamp ties. Events stamped beyond the
allowed clock skew into the future are rejected.
Payments are inserted as new rows; a client-supplied ``client_event_id``
makes retried submissions idempotent.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, tuple_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Insert

from studio.core.auth import AuthContext
from studio.core.config import settings
from studio.core.db import apply_rls_organization_context, get_db_session
from studio.core.errors import NotFoundError, StudioError, TenantMismatchError, ValidationError
from studio.models.attendance import Attendance
from studio.models.base import OrganizationScopedBase, utcnow
from studio.models.payment import Payment
from studio.models.student import Student
from studio.models.training_session import TrainingSession
from studio.schemas.sync import (
    AttendanceBatchItem,
    AttendanceSyncRequest,
    BatchEventOutcome,
    PaymentSyncRequest,
    batch_item_adapter,
)

logger = logging.getLogger(__name__)

OFFLINE_PAYMENT_STATUS = "PAID"


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class AttendanceSyncResult:
    applied: bool
    attendance_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class PaymentSyncResult:
    payment: Payment
    duplicate: bool = False


class OfflineSyncGateway:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _require_owned(
        self,
        model: type[OrganizationScopedBase],
        entity_id: UUID,
        context: AuthContext,
        label: str,
    ) -> None:
        owner = await self.session.scalar(
            select(model.organization_id).where(model.id == entity_id)
        )
        if owner is None:
            raise NotFoundError(f"{label} not found")
        if owner != context.organization_id:
            logger.warning(
                "Rejected offline event: %s %s belongs to organization %s, caller organization %s",
                label.lower(),
                entity_id,
                owner,
                context.organization_id,
            )
            raise TenantMismatchError(
                label,
                entity_organization_id=owner,
                caller_organization_id=context.organization_id,
            )

    def attendance_upsert_statement(self, context: AuthContext, event: AttendanceSyncRequest) -> Insert:
        timestamp = as_utc(event.timestamp)
        stmt = pg_insert(Attendance).values(
            organization_id=context.organization_id,
            session_id=event.session_id,
            student_id=event.student_id,
            status=event.status,
            check_in_time=timestamp,
            recorded_by_user_id=context.user_id,
            event_timestamp=timestamp,
        )
        return stmt.on_conflict_do_update(
            index_elements=["session_id", "student_id"],
            set_={
                "status": stmt.excluded.status,
                "check_in_time": stmt.excluded.check_in_time,
                "recorded_by_user_id": stmt.excluded.recorded_by_user_id,
                "event_timestamp": stmt.excluded.event_timestamp,
                "updated_at": utcnow(),
            },
            # Older events never overwrite newer state; status breaks ties.
            where=tuple_(Attendance.event_timestamp, Attendance.status)
            <= tuple_(stmt.excluded.event_timestamp, stmt.excluded.status),
        ).returning(Attendance.id)

    def _check_event_time(self, event: AttendanceSyncRequest | PaymentSyncRequest) -> None:
        latest = utcnow() + timedelta(seconds=settings.sync_max_clock_skew_seconds)
        timestamp = as_utc(event.timestamp)
        if timestamp > latest:
            raise ValidationError(
                "Event timestamp is in the future",
                details={"timestamp": timestamp.isoformat(), "latestAccepted": latest.isoformat()},
            )

    async def sync_attendance(self, context: AuthContext, event: AttendanceSyncRequest) -> AttendanceSyncResult:
        self._check_event_time(event)
        await self._require_owned(TrainingSession, event.session_id, context, "Session")
        await self._require_owned(Student, event.student_id, context, "Student")

        await apply_rls_organization_context(self.session, context.organization_id)
        result = await self.session.execute(self.attendance_upsert_statement(context, event))
        attendance_id = result.scalar_one_or_none()

        if attendance_id is None:
            logger.info(
                "Ignored stale attendance event for session %s student %s at %s",
                event.session_id,
                event.student_id,
                event.timestamp.isoformat(),
            )
            return AttendanceSyncResult(applied=False)

        return AttendanceSyncResult(applied=True, attendance_id=attendance_id)

    def _payment_values(self, context: AuthContext, event: PaymentSyncRequest) -> dict[str, object]:
        timestamp = as_utc(event.timestamp)
        return {
            "organization_id": context.organization_id,
            "student_id": event.student_id,
            "amount": event.amount,
            "payment_type": event.payment_type,
            "payment_method": event.payment_method,
            "status": OFFLINE_PAYMENT_STATUS,
            "paid_date": timestamp,
            "due_date": timestamp,
            "notes": event.notes or None,
            "client_event_id": event.client_event_id,
        }

    async def sync_payment(self, context: AuthContext, event: PaymentSyncRequest) -> PaymentSyncResult:
        self._check_event_time(event)
        await self._require_owned(Student, event.student_id, context, "Student")
        await apply_rls_organization_context(self.session, context.organization_id)

        values = self._payment_values(context, event)
        if event.client_event_id is None:
            payment = Payment(**values)
            self.session.add(payment)
            await self.session.flush()
            await self.session.refresh(payment)
            return PaymentSyncResult(payment=payment)

        stmt = (
            pg_insert(Payment)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["student_id", "client_event_id"])
            .returning(Payment)
        )
        payment = (await self.session.execute(stmt)).scalar_one_or_none()
        if payment is not None:
            return PaymentSyncResult(payment=payment)

        existing = await self.session.scalar(
            select(Payment).where(
                Payment.student_id == event.student_id,
                Payment.client_event_id == event.client_event_id,
            )
        )
        if existing is None:
            # Conflicting row vanished between statements; treat as retryable.
            raise RuntimeError("Payment idempotency conflict could not be resolved")

        logger.info(
            "Duplicate offline payment %s for student %s ignored",
            event.client_event_id,
            event.student_id,
        )
        return PaymentSyncResult(payment=existing, duplicate=True)

    async def sync_batch(self, context: AuthContext, events: list[dict[str, object]]) -> list[BatchEventOutcome]:
        """Apply each event in its own transaction and report per-event outcomes."""
        if len(events) > settings.sync_batch_max_events:
            raise ValidationError(
                f"A batch may contain at most {settings.sync_batch_max_events} events",
                details={"received": len(events)},
            )

        outcomes: list[BatchEventOutcome] = []
        for index, raw in enumerate(events):
            kind = raw.get("kind") if isinstance(raw, dict) else None
            try:
                item = batch_item_adapter.validate_python(raw)
            except PydanticValidationError as exc:
                outcomes.append(
                    BatchEventOutcome(
                        index=index,
                        kind=kind if isinstance(kind, str) else None,
                        status="rejected",
                        error=ValidationError.code,
                        message=f"Invalid event: {exc.error_count()} validation error(s)",
                    )
                )
                continue

            try:
                if isinstance(item, AttendanceBatchItem):
                    attendance = await self.sync_attendance(context, item)
                    outcome = BatchEventOutcome(
                        index=index,
                        kind=item.kind,
                        status="accepted",
                        applied=attendance.applied,
                        record_id=attendance.attendance_id,
                    )
                else:
                    payment = await self.sync_payment(context, item)
                    outcome = BatchEventOutcome(
                        index=index,
                        kind=item.kind,
                        status="accepted",
                        applied=not payment.duplicate,
                        duplicate=payment.duplicate,
                        record_id=payment.payment.id,
                    )
                await self.session.commit()
            except StudioError as exc:
                await self.session.rollback()
                outcome = BatchEventOutcome(
                    index=index,
                    kind=item.kind,
                    status="rejected",
                    error=exc.code,
                    message=exc.message,
                )
            except Exception:
                await self.session.rollback()
                logger.exception("Offline batch event %s (%s) failed", index, item.kind)
                outcome = BatchEventOutcome(
                    index=index,
                    kind=item.kind,
                    status="error",
                    error="INTERNAL_ERROR",
                    message="Internal server error",
                )
            outcomes.append(outcome)

        return outcomes


async def get_offline_sync_gateway(
    session: AsyncSession = Depends(get_db_session),
) -> OfflineSyncGateway:
    return OfflineSyncGateway(session)
