"""Bugsnag error reporting integration.

This module provides initialization for Bugsnag error tracking. ERROR-level
log records are reported automatically; reports carry the request
correlation id and, when bound, the conversation thread.
"""

import logging

import bugsnag
import structlog
from bugsnag.handlers import BugsnagHandler

from assistant_chat_service.platform.constants import SERVICE_NAME
from assistant_chat_service.platform.observability.logging import correlation_id_ctx


def attach_request_context(event) -> None:
    """Bugsnag middleware callback adding correlation metadata to a report."""
    context = {"service": SERVICE_NAME}
    correlation_id = correlation_id_ctx.get()
    if correlation_id:
        context["correlation_id"] = correlation_id
    for key in ("thread_id", "assistant_ref", "run_id"):
        value = structlog.contextvars.get_contextvars().get(key)
        if value:
            context[key] = value
    event.add_tab("conversation", context)


async def initialize_bugsnag(api_key: str, release_stage: str) -> None:
    """Initialize Bugsnag error reporting.

    Configures Bugsnag with the provided API key and attaches a handler
    to the root logger to automatically report ERROR-level log entries.

    Args:
        api_key: Bugsnag project API key
        release_stage: Environment identifier (e.g., "production", "development", "local")

    Note:
        No-op when release_stage is "local" or no API key is configured.
    """
    if release_stage == "local" or not api_key:
        return
    logger = logging.getLogger()
    bugsnag.configure(
        api_key=api_key,
        release_stage=release_stage,
        auto_notify=True,
    )
    bugsnag.before_notify(attach_request_context)
    handler = BugsnagHandler()
    handler.setLevel(logging.ERROR)
    logger.addHandler(handler)
