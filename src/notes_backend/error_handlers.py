"""Unified exception handling (ErrorResponse).

Every error leaves the API as `{error, message, request_id, details}` so the
client only has to branch on `error`, never on FastAPI's default `{"detail": ...}`.
"""

from __future__ import annotations

import logging
from typing import cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notes_backend.schemas import ErrorResponse

logger = logging.getLogger(__name__)


def _map_http_status_to_error(status_code: int) -> str:
    mapping: dict[int, str] = {
        400: "invalid_argument",
        404: "not_found",
        405: "method_not_allowed",
        413: "payload_too_large",
        422: "validation_error",
        503: "storage_failure",
    }
    return mapping.get(status_code, f"http_{status_code}")


async def _http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)

    details: object | None = None
    message = str(http_exc.detail)
    if isinstance(http_exc.detail, dict):
        # Convention: {'message': str, 'details': object}
        msg = http_exc.detail.get("message")
        if isinstance(msg, str):
            message = msg
            details = http_exc.detail.get("details")
        else:
            details = http_exc.detail
    elif isinstance(http_exc.detail, list):
        details = http_exc.detail

    error = getattr(http_exc, "error_code", None) or _map_http_status_to_error(
        http_exc.status_code
    )
    if http_exc.status_code >= 500:
        logger.warning(
            "request failed request_id=%s method=%s path=%s status=%s",
            getattr(request.state, "request_id", None),
            request.method,
            request.url.path,
            http_exc.status_code,
        )

    payload = ErrorResponse(
        error=error,
        message=message,
        request_id=getattr(request.state, "request_id", None),
        details=details,
    )
    headers = getattr(http_exc, "headers", None)
    return JSONResponse(
        status_code=http_exc.status_code,
        content=jsonable_encoder(payload, exclude_none=True),
        headers=headers,
    )


async def _validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    payload = ErrorResponse(
        error="validation_error",
        message="Request validation error",
        request_id=getattr(request.state, "request_id", None),
        details=validation_exc.errors(),
    )
    return JSONResponse(status_code=422, content=jsonable_encoder(payload, exclude_none=True))


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "unhandled exception request_id=%s method=%s path=%s",
        request_id,
        request.method,
        request.url.path,
        exc_info=exc,
    )
    payload = ErrorResponse(
        error="internal_error",
        message="Internal server error",
        request_id=request_id,
    )
    return JSONResponse(status_code=500, content=jsonable_encoder(payload, exclude_none=True))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
