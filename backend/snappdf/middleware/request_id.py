"""
SnapPDF Backend - Request ID Middleware
=========================================

What:  Tags every request with a correlation id.
How:   Reuses a client-sent X-Request-ID (up to 64 printable characters) or
       generates one, stores it in a ContextVar for loggers and exception
       handlers, and echoes it in the X-Request-ID response header.

Error responses carry the same id in `request_id`, so a client report can be
matched to the server log lines of that request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


def _accept_client_id(value: str) -> bool:
    return 0 < len(value) <= MAX_CLIENT_ID_LENGTH and value.isprintable()


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_id = request.headers.get("X-Request-ID", "").strip()
        rid = client_id if _accept_client_id(client_id) else uuid.uuid4().hex[:12]

        # Not reset: the catch-all 500 handler runs outside this middleware
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
