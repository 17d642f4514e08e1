from studio.models.attendance import Attendance
from studio.models.base import Base, OrganizationScopedBase, TimestampedBase
from studio.models.organization import Organization
from studio.models.payment import Payment
from studio.models.student import Student
from studio.models.training_session import TrainingSession
from studio.models.user import User

__all__ = [
    "Base",
    "TimestampedBase",
    "OrganizationScopedBase",
    "Organization",
    "User",
    "Student",
    "TrainingSession",
    "Attendance",
    "Payment",
]
