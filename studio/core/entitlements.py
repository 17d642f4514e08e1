from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.db import get_db_session
from studio.core.errors import NotFoundError
from studio.core.tiers import TierCatalog, TierDefinition, get_tier_catalog
from studio.models.organization import Organization

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedTier:
    tier_name: str
    subscription_status: str
    definition: TierDefinition
    stored_tier: str | None
    fallback_applied: bool = False
    trial_ends_at: datetime | None = None

    @property
    def trial_expired(self) -> bool:
        if self.subscription_status != "TRIAL" or self.trial_ends_at is None:
            return False
        ends_at = self.trial_ends_at
        if ends_at.tzinfo is None:
            ends_at = ends_at.replace(tzinfo=timezone.utc)
        return ends_at <= datetime.now(timezone.utc)


class EntitlementResolver:
    """Answers feature and limit questions for an organization.

    Subscription status is reported but never interpreted here; whether a
    lapsed trial should lose features is a business-layer decision.
    """

    def __init__(self, session: AsyncSession, catalog: TierCatalog) -> None:
        self.session = session
        self.catalog = catalog

    async def resolve_tier(self, organization_id: UUID) -> ResolvedTier:
        # Refresh rows already in the identity map; enforce() reads the tier
        # after taking the row lock.
        organization = await self.session.scalar(
            select(Organization)
            .where(Organization.id == organization_id)
            .execution_options(populate_existing=True)
        )
        if organization is None:
            raise NotFoundError("Organization not found")

        definition = self.catalog.definition_for(organization.license_tier)
        fallback_applied = definition is None
        if definition is None:
            definition = self.catalog.default_definition()
            logger.warning(
                "Organization %s has unrecognized license tier %r; falling back to %s",
                organization_id,
                organization.license_tier,
                definition.name,
            )

        return ResolvedTier(
            tier_name=definition.name,
            subscription_status=organization.subscription_status,
            definition=definition,
            stored_tier=organization.license_tier,
            fallback_applied=fallback_applied,
            trial_ends_at=organization.trial_ends_at,
        )

    async def has_feature(self, organization_id: UUID, feature_key: str) -> bool:
        resolved = await self.resolve_tier(organization_id)
        return resolved.definition.has_feature(feature_key)

    async def get_limit(self, organization_id: UUID, limit_key: str) -> int:
        resolved = await self.resolve_tier(organization_id)
        return resolved.definition.limit_for(limit_key)


async def get_entitlement_resolver(
    session: AsyncSession = Depends(get_db_session),
    catalog: TierCatalog = Depends(get_tier_catalog),
) -> EntitlementResolver:
    return EntitlementResolver(session, catalog)
