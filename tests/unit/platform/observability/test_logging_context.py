"""Unit tests for conversation logging context and Bugsnag metadata."""

from unittest.mock import Mock

import structlog

from assistant_chat_service.platform.observability.errors import (
    attach_request_context,
    initialize_bugsnag,
)
from assistant_chat_service.platform.observability.logging import (
    add_correlation_id,
    conversation_context,
    correlation_id_ctx,
)


class TestConversationContext:
    """Tests for conversation_context()."""

    def test_binds_and_unbinds(self):
        """Identifiers are visible inside the block only."""
        with conversation_context(thread_id="thread_1", assistant_ref="general"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["thread_id"] == "thread_1"
            assert bound["assistant_ref"] == "general"

        assert "thread_id" not in structlog.contextvars.get_contextvars()

    def test_none_values_skipped(self):
        with conversation_context(thread_id="thread_1", run_id=None):
            assert "run_id" not in structlog.contextvars.get_contextvars()

    def test_nested_blocks(self):
        with conversation_context(thread_id="thread_1"):
            with conversation_context(run_id="run_1"):
                bound = structlog.contextvars.get_contextvars()
                assert (bound["thread_id"], bound["run_id"]) == ("thread_1", "run_1")
            assert "run_id" not in structlog.contextvars.get_contextvars()


class TestCorrelationId:
    """Tests for the correlation id processor."""

    def test_added_when_set(self):
        token = correlation_id_ctx.set("req-1")
        try:
            event = add_correlation_id(None, "info", {"event": "hello"})
        finally:
            correlation_id_ctx.reset(token)

        assert event["correlation_id"] == "req-1"

    def test_absent_when_unset(self):
        assert "correlation_id" not in add_correlation_id(None, "info", {"event": "hello"})


class TestBugsnagContext:
    """Tests for Bugsnag report enrichment."""

    def test_conversation_tab(self):
        """Reports carry the correlation id and bound conversation identifiers."""
        event = Mock()
        token = correlation_id_ctx.set("req-1")
        try:
            with conversation_context(thread_id="thread_1", run_id="run_1"):
                attach_request_context(event)
        finally:
            correlation_id_ctx.reset(token)

        name, tab = event.add_tab.call_args.args
        assert name == "conversation"
        assert tab == {
            "service": "assistant-chat-service",
            "correlation_id": "req-1",
            "thread_id": "thread_1",
            "run_id": "run_1",
        }

    async def test_local_stage_is_noop(self, monkeypatch):
        configure = Mock()
        monkeypatch.setattr("bugsnag.configure", configure)

        await initialize_bugsnag("key", "local")
        await initialize_bugsnag("", "production")

        configure.assert_not_called()
