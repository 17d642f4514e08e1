from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.auth import AuthContext, require_staff
from studio.core.db import get_db_session
from studio.core.sync import OfflineSyncGateway, get_offline_sync_gateway
from studio.schemas.sync import (
    AttendanceSyncRequest,
    AttendanceSyncResponse,
    BatchSyncRequest,
    BatchSyncResponse,
    PaymentRecordResponse,
    PaymentSyncRequest,
    PaymentSyncResponse,
)

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("/attendance", response_model=AttendanceSyncResponse)
async def sync_attendance(
    payload: AttendanceSyncRequest,
    auth: AuthContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
    gateway: OfflineSyncGateway = Depends(get_offline_sync_gateway),
) -> AttendanceSyncResponse:
    try:
        result = await gateway.sync_attendance(auth, payload)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    if not result.applied:
        return AttendanceSyncResponse(
            message="Newer attendance already recorded; event ignored",
            applied=False,
            stale=True,
        )
    return AttendanceSyncResponse(
        message="Attendance synced successfully",
        applied=True,
        attendance_id=result.attendance_id,
    )


@router.post("/payments", response_model=PaymentSyncResponse)
async def sync_payment(
    payload: PaymentSyncRequest,
    auth: AuthContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
    gateway: OfflineSyncGateway = Depends(get_offline_sync_gateway),
) -> PaymentSyncResponse:
    try:
        result = await gateway.sync_payment(auth, payload)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    return PaymentSyncResponse(
        message="Payment already synced" if result.duplicate else "Payment synced successfully",
        duplicate=result.duplicate,
        payment=PaymentRecordResponse.model_validate(result.payment),
    )


@router.post("/batch", response_model=BatchSyncResponse)
async def sync_batch(
    payload: BatchSyncRequest,
    auth: AuthContext = Depends(require_staff),
    gateway: OfflineSyncGateway = Depends(get_offline_sync_gateway),
) -> BatchSyncResponse:
    results = await gateway.sync_batch(auth, payload.events)
    accepted = sum(1 for outcome in results if outcome.status == "accepted")
    return BatchSyncResponse(
        results=results,
        accepted=accepted,
        rejected=len(results) - accepted,
    )
