from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from studio.core.auth import AuthContext, require_auth_context
from studio.core.entitlements import EntitlementResolver, get_entitlement_resolver
from studio.core.errors import ValidationError
from studio.core.limits import LimitGuard, get_limit_guard
from studio.core.tiers import FEATURE_KEYS, LIMITATION_KEYS
from studio.schemas.license import CurrentTierResponse, FeatureCheckResponse, LimitCheckResponse

router = APIRouter(prefix="/license", tags=["license"])


@router.get("", response_model=None)
async def license_query(
    action: str | None = Query(default=None),
    feature: str | None = Query(default=None),
    limit_type: str | None = Query(default=None, alias="limitType"),
    auth: AuthContext = Depends(require_auth_context),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
    guard: LimitGuard = Depends(get_limit_guard),
) -> dict[str, object]:
    if action == "currentTier":
        resolved = await resolver.resolve_tier(auth.organization_id)
        response = CurrentTierResponse(
            tier_name=resolved.tier_name,
            subscription_status=resolved.subscription_status,
            features=resolved.definition.feature_map(),
            limitations={key: resolved.definition.limit_for(key) for key in LIMITATION_KEYS},
            fallback_applied=resolved.fallback_applied,
            trial_expired=resolved.trial_expired,
        )
        return response.model_dump(by_alias=True)

    if action == "checkFeature":
        if not feature:
            raise ValidationError("Feature parameter required")
        if feature not in FEATURE_KEYS:
            raise ValidationError(f"Unknown feature: {feature}")
        has_access = await resolver.has_feature(auth.organization_id, feature)
        return FeatureCheckResponse(has_access=has_access).model_dump(by_alias=True)

    if action == "checkLimit":
        if not limit_type:
            raise ValidationError("Limit type parameter required")
        if limit_type not in LIMITATION_KEYS:
            raise ValidationError(f"Unknown limit type: {limit_type}")
        result = await guard.check(auth.organization_id, limit_type, report_usage=True)
        return LimitCheckResponse(
            allowed=result.allowed,
            current=result.current,
            limit=result.limit,
        ).model_dump(by_alias=True)

    raise ValidationError("Invalid action")
