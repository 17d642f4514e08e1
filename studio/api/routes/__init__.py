from studio.api.routes.license import router as license_router
from studio.api.routes.resources import router as resources_router
from studio.api.routes.sync import router as sync_router
from studio.api.routes.webhooks import router as webhooks_router

__all__ = [
    "license_router",
    "resources_router",
    "sync_router",
    "webhooks_router",
]
