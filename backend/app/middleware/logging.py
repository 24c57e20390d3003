"""
Training Record Backend: Request Logging Middleware
====================================================

What:  One access-log line per request: method, path, handler name, status,
       duration.
How:   Measures wall time around call_next and picks the level from the
       status class (5xx → ERROR, 4xx → WARNING, otherwise INFO).
When:  Inside RequestIDMiddleware, so the request ID is already set.

Logged:     method, path, handler, status, duration, request ID, client IP
Not logged: request bodies (workout notes are user data), headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var
from app.routes.training_record import resolve_route_name

logger = logging.getLogger("training_record.access")

# Probes hit these every few seconds
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        handler = resolve_route_name(path)
        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            log_level,
            "%s %s (%s) %d %.1fms [%s] from %s",
            request.method,
            path,
            handler or "-",
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "handler": handler,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
