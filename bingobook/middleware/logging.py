"""
BingoBook Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request: method, path, status, duration,
       request ID, the entry the request touched and client address.
How:   Wraps the downstream call, times it with perf_counter, and picks the
       log level from the status code (5xx ERROR, 4xx WARNING, else INFO).

Entry id:
    Read after the handler ran. Route handlers and the payload dependency
    set request.state.entry_id; the /timesheets/{entry_id} reads fall back
    to the path parameter. Requests that touch no entry log "entry=-".

Request bodies are never logged (they carry names and free text).
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from bingobook.middleware.request_id import request_id_var

logger = logging.getLogger("bingobook.access")


def entry_id_of(request: Request) -> Optional[str]:
    entry_id = getattr(request.state, "entry_id", None)
    if entry_id is None:
        entry_id = request.path_params.get("entry_id")
    return None if entry_id is None else str(entry_id)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request after its response is produced. /health is skipped."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/health":
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

        entry_id = entry_id_of(request)
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            log_level,
            "%s %s -> %d entry=%s (%.1fms) [%s] from %s",
            request.method,
            request.url.path,
            status,
            entry_id or "-",
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "entry_id": entry_id,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
