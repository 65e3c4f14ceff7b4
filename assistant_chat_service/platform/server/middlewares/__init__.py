"""HTTP middleware components."""

from assistant_chat_service.platform.server.middlewares.correlation import (
    REQUEST_ID_HEADER,
    CorrelationIdMiddleware,
)

__all__ = [
    "CorrelationIdMiddleware",
    "REQUEST_ID_HEADER",
]
