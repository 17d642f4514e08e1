from studio.core.repositories.base import OrganizationContextMissingError, OrganizationRepository
from studio.core.repositories.students import StudentRepository
from studio.core.repositories.training_sessions import TrainingSessionRepository

__all__ = [
    "OrganizationContextMissingError",
    "OrganizationRepository",
    "StudentRepository",
    "TrainingSessionRepository",
]
