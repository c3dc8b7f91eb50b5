"""Per-request values visible to log records.

The request id is set by ``RequestContextMiddleware`` and read by the logging
filter, so audit lines for loan decisions can be joined to the access log.
"""

import contextvars

NO_REQUEST = "-"

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default=NO_REQUEST)


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


def clear_context() -> None:
    _request_id.set(NO_REQUEST)
