"""Request ID middleware.

Generates or forwards X-Request-ID and echoes it on the response so a
transition can be traced from the client log to the server log.
Client-provided values are sanitized (length + character set) to prevent log injection.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming.
"""

import re
import uuid
from typing import Callable

REQUEST_ID_MAX_LENGTH = 64
REQUEST_ID_ALLOWED_PATTERN = re.compile(
    r"^[a-zA-Z0-9_-]{1," + str(REQUEST_ID_MAX_LENGTH) + r"}$"
)


def _header_value(scope: dict, name: str) -> str | None:
    """Return the first value of header name (case-insensitive), or None."""
    wanted = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            return value.decode("utf-8", errors="replace")
    return None


def sanitize_request_id(raw: str | None) -> str:
    """Return raw when it is a safe id; otherwise a fresh UUID4."""
    if raw is None:
        return str(uuid.uuid4())
    candidate = raw.strip()
    if not REQUEST_ID_ALLOWED_PATTERN.match(candidate):
        return str(uuid.uuid4())
    return candidate


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Add or forward the request id header on each HTTP request and response."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = sanitize_request_id(_header_value(scope, header_name))
        scope.setdefault("state", {})["request_id"] = request_id
        encoded = (header_name.lower().encode(), request_id.encode())

        async def send_with_request_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [*message.get("headers", []), encoded]
            await send(message)

        await app(scope, receive, send_with_request_id)

    return asgi_app
