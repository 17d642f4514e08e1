from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.db import get_db_session
from studio.core.entitlements import EntitlementResolver, get_entitlement_resolver
from studio.core.errors import LimitExceededError, NotFoundError
from studio.core.tiers import UNLIMITED
from studio.core.usage import UsageAggregator
from studio.models.organization import Organization

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LimitCheckResult:
    allowed: bool
    current: int
    limit: int
    limit_type: str
    current_tier: str
    suggested_tier: str | None = None

    def details(self) -> dict[str, object]:
        return {
            "current": self.current,
            "limit": self.limit,
            "limitType": self.limit_type,
            "currentTier": self.current_tier,
            "suggestedTier": self.suggested_tier,
        }


class LimitGuard:
    def __init__(
        self,
        session: AsyncSession,
        resolver: EntitlementResolver,
        usage: UsageAggregator,
    ) -> None:
        self.session = session
        self.resolver = resolver
        self.usage = usage

    async def check(
        self,
        organization_id: UUID,
        limit_key: str,
        *,
        report_usage: bool = False,
        now: datetime | None = None,
    ) -> LimitCheckResult:
        """``now`` anchors the billing period of per-month limits (default: wall clock)."""
        resolved = await self.resolver.resolve_tier(organization_id)
        limit = resolved.definition.limit_for(limit_key)

        if limit == UNLIMITED:
            current = 0
            if report_usage:
                current = await self.usage.current_usage(organization_id, limit_key, now)
            return LimitCheckResult(
                allowed=True,
                current=current,
                limit=limit,
                limit_type=limit_key,
                current_tier=resolved.tier_name,
            )

        current = await self.usage.current_usage(organization_id, limit_key, now)
        if current < limit:
            return LimitCheckResult(
                allowed=True,
                current=current,
                limit=limit,
                limit_type=limit_key,
                current_tier=resolved.tier_name,
            )

        suggested_tier = None
        for candidate in self.resolver.catalog.tiers_above(resolved.tier_name):
            candidate_limit = candidate.limit_for(limit_key)
            if candidate_limit == UNLIMITED or candidate_limit > current:
                suggested_tier = candidate.name
                break

        return LimitCheckResult(
            allowed=False,
            current=current,
            limit=limit,
            limit_type=limit_key,
            current_tier=resolved.tier_name,
            suggested_tier=suggested_tier,
        )

    async def lock_organization(self, organization_id: UUID) -> None:
        locked = await self.session.execute(
            select(Organization.id).where(Organization.id == organization_id).with_for_update()
        )
        if locked.scalar_one_or_none() is None:
            raise NotFoundError("Organization not found")

    async def enforce(
        self,
        organization_id: UUID,
        limit_key: str,
        *,
        now: datetime | None = None,
    ) -> LimitCheckResult:
        """Check a limit while holding the organization row lock.

        Must run inside the transaction that performs the resource-creating
        write; the lock is released when that transaction commits or rolls back.
        """
        await self.lock_organization(organization_id)
        result = await self.check(organization_id, limit_key, now=now)
        if not result.allowed:
            logger.info(
                "Limit %s exceeded for organization %s (%s/%s on %s)",
                limit_key,
                organization_id,
                result.current,
                result.limit,
                result.current_tier,
            )
            raise LimitExceededError(result)
        return result


async def get_limit_guard(
    session: AsyncSession = Depends(get_db_session),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
) -> LimitGuard:
    return LimitGuard(session, resolver, UsageAggregator(session))
