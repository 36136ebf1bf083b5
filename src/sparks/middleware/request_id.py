"""Request/caller correlation ids bound into the structlog context."""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"
CALLER_HEADER = "X-Caller-Id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Propagate or mint X-Request-Id and tag log lines with the calling service."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            caller=request.headers.get(CALLER_HEADER, "unknown"),
        )
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
