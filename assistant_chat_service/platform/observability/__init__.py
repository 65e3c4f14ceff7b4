"""Observability infrastructure module.

This module provides monitoring and error tracking:
- Structured logging with correlation IDs
- Prometheus metrics for HTTP requests, runs and tool calls
- Bugsnag error reporting
"""

from assistant_chat_service.platform.observability.logging import (
    configure_logging,
    conversation_context,
    correlation_id_ctx,
    get_logger,
)
from assistant_chat_service.platform.observability.metrics import (
    BUCKETS,
    POLL_ATTEMPTS,
    RUNS,
    TOOL_CALLS,
    prometheus_middleware,
)

__all__ = [
    "BUCKETS",
    "POLL_ATTEMPTS",
    "RUNS",
    "TOOL_CALLS",
    "configure_logging",
    "conversation_context",
    "correlation_id_ctx",
    "get_logger",
    "prometheus_middleware",
]
