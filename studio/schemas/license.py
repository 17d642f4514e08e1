from __future__ import annotations

from studio.schemas.base import CamelModel


class CurrentTierResponse(CamelModel):
    tier_name: str
    subscription_status: str
    features: dict[str, bool]
    limitations: dict[str, int]
    fallback_applied: bool = False
    trial_expired: bool = False


class FeatureCheckResponse(CamelModel):
    has_access: bool


class LimitCheckResponse(CamelModel):
    allowed: bool
    current: int
    limit: int
