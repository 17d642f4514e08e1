from __future__ import annotations

from studio.schemas.base import CamelModel


class BillingWebhookResponse(CamelModel):
    received: bool
    event_type: str
    organization_id: str | None = None
    updated: bool
