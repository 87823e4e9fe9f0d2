"""Security headers middleware.

Adds a request id and security headers to all HTTP responses using pure ASGI pattern.
"""

from uuid import uuid4

from ..config import settings

REQUEST_ID_HEADER = b"x-request-id"


class SecurityHeadersMiddleware:
    """
    Add a request id and security headers to all responses.

    Uses pure ASGI middleware pattern instead of BaseHTTPMiddleware
    to avoid Content-Length mismatch issues with streaming responses.

    An incoming X-Request-Id is reused; otherwise a new one is generated.
    The id is exposed to endpoints as ``request.state.request_id``.

    Headers added:
        - X-Request-Id: Unique request identifier for tracing
        - X-Content-Type-Options: nosniff
        - X-Frame-Options: DENY
        - Strict-Transport-Security: (production only)
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers") or []).get(REQUEST_ID_HEADER)
        request_id = incoming.decode("latin-1") if incoming else str(uuid4())
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                headers.append((b"x-content-type-options", b"nosniff"))
                headers.append((b"x-frame-options", b"DENY"))

                # Add HSTS in production (non-debug mode)
                if not settings.debug and settings.environment == "production":
                    headers.append(
                        (b"strict-transport-security", b"max-age=31536000; includeSubDomains")
                    )

                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_headers)
