"""
Request ID middleware.

Every request gets an id (the client's ``X-Request-ID`` or a fresh UUID).
It is stored on ``request.state``, echoed in the response header and
attached to every log record emitted while the request is handled.
"""

import uuid
import logging
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIDFilter(logging.Filter):
    """Copies the current request id onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get() or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        reset_token = _request_id.set(request_id)
        try:
            response: Response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            _request_id.reset(reset_token)


def get_request_id(request: Request) -> str:
    """Request id for the current request, or "no-request-id" outside the middleware."""
    return getattr(request.state, "request_id", "no-request-id")
