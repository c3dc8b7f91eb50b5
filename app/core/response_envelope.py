from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response


def _success_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Success"


def envelope(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Build a success envelope explicitly, e.g. to carry a custom message."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    payload: dict[str, Any] = {"success": True}
    if message is not None:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    return payload


def _build_success_envelope(data: Any, status_code: int) -> dict[str, Any]:
    return {
        "success": True,
        "message": _success_message(status_code),
        "data": data,
    }


def _is_enveloped(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    return isinstance(payload.get("success"), bool) and ("message" in payload or "data" in payload)


def _copy_headers(source: Response, target: Response) -> Response:
    for key, value in source.headers.items():
        if key.lower() in {"content-length", "content-type"}:
            continue
        target.headers[key] = value
    return target


class ResponseEnvelopeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next) -> Response:
        response = await call_next(request)

        if response.status_code < 200 or response.status_code >= 300:
            return response
        if request.url.path == getattr(request.app, "openapi_url", None):
            return response

        # Convert 204 to a 200 success envelope for frontend consistency
        if response.status_code == 204:
            return _copy_headers(
                response, JSONResponse(status_code=200, content=_build_success_envelope(None, 200))
            )

        if "application/json" not in response.headers.get("content-type", ""):
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        try:
            payload = json.loads(body.decode("utf-8")) if body else None
        except ValueError:
            return _copy_headers(
                response,
                Response(content=body, status_code=response.status_code, media_type="application/json"),
            )

        if _is_enveloped(payload):
            content = payload
        else:
            content = _build_success_envelope(payload, response.status_code)
        return _copy_headers(response, JSONResponse(status_code=response.status_code, content=content))


def register_response_envelope(app) -> None:
    app.add_middleware(ResponseEnvelopeMiddleware)
