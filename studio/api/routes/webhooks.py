from __future__ import annotations

import json
import logging
from uuid import UUID

import redis.asyncio as redis
import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.core.config import settings
from studio.core.db import get_db_session
from studio.core.tiers import TierCatalog, get_tier_catalog
from studio.models.organization import Organization
from studio.schemas.billing import BillingWebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}

_STRIPE_STATUS_MAP = {
    "trialing": "TRIAL",
    "active": "ACTIVE",
    "past_due": "PAST_DUE",
    "unpaid": "PAST_DUE",
    "canceled": "CANCELED",
    "incomplete": "INCOMPLETE",
    "incomplete_expired": "INCOMPLETE",
}


def _subscription_object(payload: dict) -> dict:
    return (payload.get("data") or {}).get("object") or {}


def _extract_organization_id(payload: dict) -> UUID | None:
    metadata = _subscription_object(payload).get("metadata") or {}
    raw = metadata.get("organizationId") or metadata.get("organization_id")
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None


def _extract_tier(payload: dict, catalog: TierCatalog) -> str | None:
    metadata = _subscription_object(payload).get("metadata") or {}
    tier = (metadata.get("licenseTier") or metadata.get("tier") or "").strip().upper()
    if tier and tier in catalog:
        return tier
    return None


def _subscription_status(event_type: str, payload: dict) -> str:
    if event_type == "customer.subscription.created":
        return "ACTIVE"
    if event_type == "customer.subscription.deleted":
        return "CANCELED"
    stripe_status = str(_subscription_object(payload).get("status") or "").lower()
    return _STRIPE_STATUS_MAP.get(stripe_status, "ACTIVE")


async def _publish_organization_status(organization_id: str, subscription_status: str, license_tier: str) -> None:
    redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await redis_client.set(f"organization:subscription_status:{organization_id}", subscription_status)
        await redis_client.publish(
            f"billing:organization_status:{organization_id}",
            json.dumps({"subscriptionStatus": subscription_status, "licenseTier": license_tier}),
        )
    finally:
        await redis_client.aclose()


def _verify_and_parse_event(raw_body: bytes, stripe_signature: str | None) -> dict:
    if settings.stripe_webhook_secret and not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Stripe signature",
        )

    if stripe_signature and settings.stripe_webhook_secret:
        try:
            stripe.Webhook.construct_event(
                payload=raw_body,
                sig_header=stripe_signature,
                secret=settings.stripe_webhook_secret,
            )
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid Stripe signature: {exc}",
            ) from exc

    try:
        return json.loads(raw_body.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload",
        ) from exc


@router.post("/stripe", response_model=BillingWebhookResponse)
async def stripe_webhook(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    catalog: TierCatalog = Depends(get_tier_catalog),
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
) -> BillingWebhookResponse:
    raw_body = await request.body()
    payload = _verify_and_parse_event(raw_body, stripe_signature)
    event_type = payload.get("type", "unknown")

    if event_type not in SUBSCRIPTION_EVENTS:
        return BillingWebhookResponse(received=True, event_type=event_type, updated=False)

    organization_id = _extract_organization_id(payload)
    if organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload missing organization identifier",
        )

    organization = await session.scalar(select(Organization).where(Organization.id == organization_id))
    if organization is None:
        logger.warning("Stripe %s for unknown organization %s", event_type, organization_id)
        return BillingWebhookResponse(received=True, event_type=event_type, updated=False)

    organization.subscription_status = _subscription_status(event_type, payload)
    tier = _extract_tier(payload, catalog)
    if tier is not None:
        organization.license_tier = tier

    subscription_id = _subscription_object(payload).get("id")
    if event_type == "customer.subscription.deleted":
        organization.stripe_subscription_id = None
    elif subscription_id:
        organization.stripe_subscription_id = subscription_id

    await session.commit()
    await _publish_organization_status(
        str(organization.id),
        organization.subscription_status,
        organization.license_tier,
    )

    return BillingWebhookResponse(
        received=True,
        event_type=event_type,
        organization_id=str(organization.id),
        updated=True,
    )
