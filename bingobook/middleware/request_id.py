"""
BingoBook Backend — Request ID Middleware
===========================================

What:  Tags every request with a short correlation ID.
How:   Keeps a client-supplied X-Request-ID when it is a plain token
       (letters, digits, '-' or '_', at most 64 chars), otherwise generates
       8 hex chars. The ID lives in a ContextVar (read by the access log and
       the error handlers) and is echoed in the response headers.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(supplied: Optional[str]) -> str:
    """Client's ID if it is safe to log and echo, else a fresh one."""
    if supplied and REQUEST_ID_PATTERN.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
