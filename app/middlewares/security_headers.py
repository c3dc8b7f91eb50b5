from starlette.types import ASGIApp, Receive, Scope, Send, Message

from app.core.settings import settings

_DEFAULT_HEADERS: list[tuple[bytes, bytes]] = [
    (b"x-content-type-options", b"nosniff"),
    (b"x-frame-options", b"DENY"),
    (b"referrer-policy", b"no-referrer"),
    (b"x-xss-protection", b"0"),
    (b"cross-origin-opener-policy", b"same-origin"),
    (b"cross-origin-resource-policy", b"same-origin"),
]

_HSTS = (b"strict-transport-security", b"max-age=63072000; includeSubDomains")


class SecurityHeadersMiddleware:
    """Apply safe default security headers to HTTP responses.

    Headers already set by the endpoint win over the defaults. API responses
    carry applicant data, so they are also marked as non-cacheable.
    """

    def __init__(self, app: ASGIApp, enable_hsts: bool = True) -> None:
        self.app = app
        self.enable_hsts = enable_hsts

    def _headers_for(self, path: str) -> list[tuple[bytes, bytes]]:
        headers = list(_DEFAULT_HEADERS)
        if self.enable_hsts:
            headers.append(_HSTS)
        if settings.content_security_policy:
            headers.append((b"content-security-policy", settings.content_security_policy.encode()))
        if path.startswith("/api/"):
            headers.append((b"cache-control", b"no-store"))
        return headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        extra = self._headers_for(scope.get("path", ""))

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                new_headers = list(message.get("headers", []))
                existing_keys = {key.lower() for key, _ in new_headers}
                for key, value in extra:
                    if key not in existing_keys:
                        new_headers.append((key, value))
                message["headers"] = new_headers
            await send(message)

        await self.app(scope, receive, send_with_headers)
