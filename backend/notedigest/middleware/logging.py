"""
NoteDigest Backend: Request Logging Middleware
================================================

What:  One access-log line per HTTP request: method, path, status, duration,
       request id and owner id.
Who:   Applied to every request except /health (probed too often to be useful).

Log level follows the status: 5xx → ERROR, 4xx → WARNING, else INFO.
Request bodies (note content) are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notedigest.middleware.request_id import request_id_var

logger = logging.getLogger("notedigest.access")

OWNER_HEADER = "X-Owner-ID"
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        rid = request_id_var.get("")
        owner = request.headers.get(OWNER_HEADER, "-")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] owner=%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            owner,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
