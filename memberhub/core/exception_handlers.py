from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

Installed by `memberhub.main.create_app`. All HTTP errors are rendered as
application/problem+json with a stable schema; `AppException` subclasses add
their typed `code` and `details`.
"""

import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from memberhub.core.exceptions import AppException, ConfigurationError

logger = logging.getLogger(__name__)


def _problem(title: str, detail: str, status_code: int, request: Request, **extra) -> JSONResponse:
    content = {
        "type": "about:blank",
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": str(request.url),
    }
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        content["request_id"] = request_id
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, media_type="application/problem+json")


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s (setting=%s)", exc.message, exc.setting)
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    extra = {"code": exc.code}
    if exc.details is not None:
        extra["details"] = exc.details
    response = _problem(title, exc.message, exc.status_code, request, **extra)
    for k, v in (exc.headers or {}).items():
        response.headers[k] = v
    return response


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    response = _problem(title, detail, exc.status_code, request)
    for k, v in (getattr(exc, "headers", None) or {}).items():
        response.headers[k] = v
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _problem(
        "Validation error",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        request,
        errors=jsonable_encoder(exc.errors()),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _problem(
        "Internal Server Error",
        "An unexpected error occurred.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        request,
    )


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]
