import logging

from fastapi import FastAPI

from studio.api.errors import register_exception_handlers
from studio.api.middleware import organization_context_middleware
from studio.api.routes.license import router as license_router
from studio.api.routes.resources import router as resources_router
from studio.api.routes.sync import router as sync_router
from studio.api.routes.webhooks import router as webhooks_router
from studio.core.config import settings

logging.getLogger("studio").setLevel(settings.log_level.upper())

app = FastAPI(title="Studio Entitlements")
app.middleware("http")(organization_context_middleware)
register_exception_handlers(app)
app.include_router(license_router, prefix="/api/v1")
app.include_router(resources_router, prefix="/api/v1")
app.include_router(sync_router, prefix="/api/v1")
app.include_router(webhooks_router, prefix="/api/v1")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
