from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.settings import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that map onto a response envelope."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, errors: list[dict] | None = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class InvalidTransition(AppError):
    status_code = 400
    default_message = "Invalid status transition"


class DuplicateApplication(AppError):
    status_code = 400
    default_message = "You already have a pending loan application"


class Conflict(AppError):
    status_code = 409
    default_message = "Resource was modified concurrently"


class InternalError(AppError):
    status_code = 500


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _build_response(
    status_code: int,
    message: str,
    errors: list[Any] | None = None,
    **extra: Any,
) -> JSONResponse:
    payload: dict[str, Any] = {"success": False, "message": message}
    if errors:
        payload["errors"] = errors
    payload.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def _format_validation_errors(errors: list[dict]) -> list[dict]:
    formatted = []
    for error in errors:
        loc = error.get("loc") or []
        # Drop the request section (body/query/path) from the location
        loc_parts = [str(part) for part in loc if part not in {"body", "query", "path"}]
        formatted.append(
            {
                "field": ".".join(loc_parts) or None,
                "message": error.get("msg") or "Invalid value",
                "type": error.get("type"),
            }
        )
    return formatted


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request to %s failed: %s", request.url.path, exc.message)
    return _build_response(exc.status_code, exc.message, exc.errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        message = "API endpoint not found"
    elif isinstance(detail, str):
        message = detail
    else:
        message = _default_message(exc.status_code)
    errors = detail if isinstance(detail, list) else None
    response = _build_response(exc.status_code, message, errors)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _build_response(
        status_code=400,
        message="Validation failed",
        errors=_format_validation_errors(exc.errors()),
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = _build_response(
        status_code=429,
        message="Too many requests from this IP, please try again later.",
    )
    headers = getattr(exc, "headers", None)
    if isinstance(headers, dict):
        response.headers.update(headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra: dict[str, Any] = {}
    if not settings.is_production:
        extra["error"] = str(exc)
    return _build_response(500, "Internal server error", **extra)


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
