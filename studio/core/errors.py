from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from studio.core.limits import LimitCheckResult


class StudioError(Exception):
    """Base class for errors the API boundary knows how to report."""

    code = "STUDIO_ERROR"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(StudioError):
    code = "VALIDATION_ERROR"


class NotFoundError(StudioError):
    code = "NOT_FOUND"


class TenantMismatchError(StudioError):
    """A referenced entity exists but belongs to another organization.

    Reported to callers exactly like :class:`NotFoundError` so that the
    existence of another tenant's data is never confirmed.
    """

    code = "NOT_FOUND"

    def __init__(self, entity: str, *, entity_organization_id: object, caller_organization_id: object) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_organization_id = entity_organization_id
        self.caller_organization_id = caller_organization_id


class LimitExceededError(StudioError):
    code = "LIMIT_EXCEEDED"

    def __init__(self, result: LimitCheckResult) -> None:
        super().__init__(
            f"The {result.current_tier} plan allows {result.limit} for {result.limit_type}.",
            details=result.details(),
        )
        self.result = result
