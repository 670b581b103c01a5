"""
SpiritArt Backend: Access Logging Middleware
=============================================

What:  One access-log line per request on the `spiritart.access` logger:

    POST /api/upload-image 200 6123.4ms [a1b2c3d4] from 10.0.0.7

Level follows the status class: 5xx → ERROR, 4xx → WARNING, else INFO.
`GET /health` and `GET /` (platform probes) are not logged.

Never logged: request bodies (payment signatures, uploaded images) and
headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from spiritart.middleware.request_id import request_id_var

logger = logging.getLogger("spiritart.access")

QUIET_PATHS = {"/", "/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
