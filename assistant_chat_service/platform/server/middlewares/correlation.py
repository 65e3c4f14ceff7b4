"""Middleware tagging each request with a correlation id for log tracing."""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from assistant_chat_service.platform.observability.logging import correlation_id_ctx

REQUEST_ID_HEADER = "X-Request-ID"
# Accepted from upstream proxies that tag requests under the older name
CORRELATION_ID_HEADER = "X-Correlation-ID"


def resolve_correlation_id(request: Request) -> str:
    """Pick the caller-supplied id, or mint one when none was sent."""
    for header in (REQUEST_ID_HEADER, CORRELATION_ID_HEADER):
        value = request.headers.get(header, "").strip()
        if value:
            return value
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Store a correlation id for the duration of a request.

    The id lands in ``correlation_id_ctx`` (read by the logging processor),
    the request method and path are bound to the structlog context so
    orchestration logs can be traced back to the endpoint, and the id is
    echoed back in the ``X-Request-ID`` response header.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = resolve_correlation_id(request)
        token = correlation_id_ctx.set(correlation_id)

        try:
            with structlog.contextvars.bound_contextvars(
                http_method=request.method, http_path=request.url.path
            ):
                response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = correlation_id
            return response
        finally:
            correlation_id_ctx.reset(token)
