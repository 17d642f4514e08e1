from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.responses import JSONResponse

from studio.core.errors import (
    LimitExceededError,
    NotFoundError,
    TenantMismatchError,
    ValidationError,
)
from studio.schemas.errors import ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body.model_dump(exclude_none=True)))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            ErrorResponse(error=exc.code, message=exc.message, details=exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            ErrorResponse(error=ValidationError.code, message="Missing or invalid fields", details=errors),
        )

    @app.exception_handler(TenantMismatchError)
    async def tenant_mismatch_handler(request: Request, exc: TenantMismatchError) -> JSONResponse:
        # Same body as a genuine miss; the mismatch itself stays in the logs.
        logger.warning(
            "Tenant mismatch on %s: %s owned by %s, caller %s",
            request.url.path,
            exc.entity,
            exc.entity_organization_id,
            exc.caller_organization_id,
        )
        return _error_response(
            status.HTTP_404_NOT_FOUND,
            ErrorResponse(error=exc.code, message=exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(
            status.HTTP_404_NOT_FOUND,
            ErrorResponse(error=exc.code, message=exc.message),
        )

    @app.exception_handler(LimitExceededError)
    async def limit_exceeded_handler(request: Request, exc: LimitExceededError) -> JSONResponse:
        return _error_response(
            status.HTTP_403_FORBIDDEN,
            ErrorResponse(error=exc.code, message=exc.message, details=exc.details),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(error="INTERNAL_ERROR", message="Internal server error"),
        )
