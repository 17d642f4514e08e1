from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request
from starlette.responses import Response

from studio.core.context import reset_current_organization_id, set_current_organization_id


async def organization_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    # Authentication fills the context; never let it leak between requests.
    token = set_current_organization_id(None)
    try:
        return await call_next(request)
    finally:
        reset_current_organization_id(token)
