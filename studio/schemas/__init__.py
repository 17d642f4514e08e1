from studio.schemas.billing import BillingWebhookResponse
from studio.schemas.errors import ErrorResponse
from studio.schemas.license import CurrentTierResponse, FeatureCheckResponse, LimitCheckResponse
from studio.schemas.resources import (
    StudentCreateRequest,
    StudentResponse,
    TrainingSessionCreateRequest,
    TrainingSessionResponse,
)
from studio.schemas.sync import (
    AttendanceSyncRequest,
    AttendanceSyncResponse,
    BatchEventOutcome,
    BatchSyncRequest,
    BatchSyncResponse,
    PaymentRecordResponse,
    PaymentSyncRequest,
    PaymentSyncResponse,
)

__all__ = [
    "BillingWebhookResponse",
    "ErrorResponse",
    "CurrentTierResponse",
    "FeatureCheckResponse",
    "LimitCheckResponse",
    "StudentCreateRequest",
    "StudentResponse",
    "TrainingSessionCreateRequest",
    "TrainingSessionResponse",
    "AttendanceSyncRequest",
    "AttendanceSyncResponse",
    "PaymentSyncRequest",
    "PaymentSyncResponse",
    "PaymentRecordResponse",
    "BatchSyncRequest",
    "BatchSyncResponse",
    "BatchEventOutcome",
]
