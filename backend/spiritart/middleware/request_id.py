"""
SpiritArt Backend: Request ID Middleware
=========================================

What:  Tags every request with a short correlation id.
How:   Reuses the client's `X-Request-ID` when it sends one, otherwise
       generates 8 hex characters. The id is stored in a ContextVar (for
       loggers and exception handlers) and on `request.state` (for routes),
       and echoed back in the `X-Request-ID` response header.

Error bodies carry the same id as `request_id`, so a user reporting a failed
payment or transformation can be matched to the server logs.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
