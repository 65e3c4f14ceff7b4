"""Streaming completion driver.

Launches a run with an event stream and relays normalized events to the
caller as they arrive, persisting each completed message inline.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any

from assistant_chat_service.platform.clients.assistants.dispatcher import ToolDispatcher
from assistant_chat_service.platform.clients.assistants.events import (
    NormalizedEvent,
    normalize_event,
)
from assistant_chat_service.platform.clients.assistants.exceptions import (
    AssistantClientError,
    MalformedEventError,
)
from assistant_chat_service.platform.clients.assistants.extractor import first_text
from assistant_chat_service.platform.clients.assistants.provider import AssistantProvider
from assistant_chat_service.platform.clients.assistants.records import (
    RUN_TERMINAL_EVENTS,
    Message,
    ProviderEvent,
    Run,
    RunStatus,
    StreamEvent,
    StreamEventType,
)
from assistant_chat_service.platform.clients.assistants.store import (
    ConversationStore,
    persist_quietly,
)
from assistant_chat_service.platform.clients.assistants.strategies.base import (
    requested_tool_calls,
)
from assistant_chat_service.platform.observability.metrics import RUNS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamContext:
    """Who a streaming session belongs to, recorded on persisted messages."""

    assistant_ref: str
    caller_ref: str | None = None


class _Relay:
    """Per-session state: message accumulators and the last observed run."""

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        self.buffers: dict[str, list[str]] = {}
        self.run: Run | None = None

    def event(self, event_type: StreamEventType, data: dict[str, Any]) -> StreamEvent:
        return StreamEvent(type=event_type, data=data, thread_id=self.thread_id)

    def ended(self) -> StreamEvent:
        return self.event(
            StreamEventType.STREAM_ENDED,
            {
                "run_id": self.run.id if self.run else None,
                "status": str(self.run.status) if self.run else None,
            },
        )

    def error(self, message: str) -> StreamEvent:
        return self.event(
            StreamEventType.ERROR,
            {"message": message, "run_id": self.run.id if self.run else None},
        )


class StreamingDriver:
    """Streaming completion driver.

    Consumes one ordered feed per run, one event at a time. Every session
    ends with exactly one terminal event: ``stream.ended`` after a terminal
    run event or an exhausted feed, or ``error`` on a provider/internal
    failure.
    """

    def __init__(
        self,
        provider: AssistantProvider,
        dispatcher: ToolDispatcher,
        store: ConversationStore | None = None,
    ):
        """Initialize the driver.

        Args:
            provider: Provider used to open event streams.
            dispatcher: Tool dispatcher for ``requires_action`` episodes.
            store: Conversation Store completed messages are appended to.
        """
        self._provider = provider
        self._dispatcher = dispatcher
        self._store = store

    async def stream(
        self, thread_id: str, assistant_id: str, context: StreamContext
    ) -> AsyncIterator[StreamEvent]:
        """Launch a run and relay its events.

        Closing this generator (caller abort) closes the underlying provider
        stream.

        Args:
            thread_id: Thread the user's message was appended to.
            assistant_id: Provider assistant to run.
            context: Session ownership recorded on persisted messages.

        Yields:
            StreamEvent objects in provider order.
        """
        relay = _Relay(thread_id)
        feed: AsyncIterator[ProviderEvent] | None = self._provider.stream_run(
            thread_id, assistant_id
        )

        try:
            while feed is not None:
                continuation = None
                async with aclosing(feed):  # type: ignore[type-var]
                    async for raw in feed:
                        try:
                            normalized = normalize_event(raw)
                        except MalformedEventError as e:
                            logger.warning(f"Dropping stream event: {e}")
                            continue
                        if normalized is None:
                            continue

                        if normalized.type == StreamEventType.ERROR:
                            logger.error(f"Provider stream error on thread {thread_id}: {normalized.error}")
                            RUNS.labels("streaming", "error").inc()
                            yield relay.error(normalized.error or "Provider stream error")
                            return

                        if normalized.type == StreamEventType.MESSAGE_DELTA:
                            yield self._on_delta(relay, normalized)
                            continue

                        if normalized.type == StreamEventType.MESSAGE_COMPLETED:
                            yield await self._on_completed(relay, normalized, context)
                            continue

                        run = normalized.run
                        assert run is not None
                        relay.run = run

                        if normalized.type in RUN_TERMINAL_EVENTS:
                            logger.info(f"Run {run.id} finished with status: {run.status}")
                            RUNS.labels("streaming", str(run.status)).inc()
                            yield relay.event(normalized.type, _run_data(run))
                            yield relay.ended()
                            return

                        yield relay.event(StreamEventType.RUN_STATUS_CHANGED, _run_data(run))

                        if run.status == RunStatus.REQUIRES_ACTION:
                            continuation = await self._resolve_required_action(run)
                            break
                feed = continuation

            logger.warning(f"Provider stream for thread {thread_id} ended without a terminal run event")
            yield relay.ended()
        except AssistantClientError as e:
            logger.error(f"Streaming session on thread {thread_id} aborted: {e}")
            await self._cancel_quietly(relay.run)
            RUNS.labels("streaming", "error").inc()
            yield relay.error(e.message)
        except Exception as e:
            logger.exception(f"Streaming session on thread {thread_id} failed")
            RUNS.labels("streaming", "error").inc()
            yield relay.error(str(e) or "Internal error while streaming")

    def _on_delta(self, relay: _Relay, event: NormalizedEvent) -> StreamEvent:
        message_id = event.message_id or ""
        text = event.text or ""
        relay.buffers.setdefault(message_id, []).append(text)
        return relay.event(
            StreamEventType.MESSAGE_DELTA, {"message_id": message_id, "text": text}
        )

    async def _on_completed(
        self, relay: _Relay, event: NormalizedEvent, context: StreamContext
    ) -> StreamEvent:
        completed = event.message
        assert completed is not None
        accumulated = "".join(relay.buffers.pop(completed.id, []))
        content = accumulated or first_text(completed) or ""

        message = Message(
            id=completed.id,
            thread_id=relay.thread_id,
            role=completed.role,
            content=content,
            run_id=completed.run_id,
            assistant_ref=context.assistant_ref,
            caller_ref=context.caller_ref,
            **({"created_at": completed.created_at} if completed.created_at else {}),
        )
        await persist_quietly(self._store, message)

        return relay.event(
            StreamEventType.MESSAGE_COMPLETED,
            {
                "message_id": message.id,
                "role": message.role,
                "content": message.content,
                "run_id": message.run_id,
            },
        )

    async def _resolve_required_action(self, run: Run) -> AsyncIterator[ProviderEvent]:
        """Answer the pending calls and return the continuation feed."""
        tool_calls = requested_tool_calls(run)
        logger.info(f"Run {run.id} requires {len(tool_calls)} tool call(s)")
        outputs = await self._dispatcher.dispatch(tool_calls)
        return self._provider.stream_tool_outputs(run.thread_id, run.id, outputs)

    async def _cancel_quietly(self, run: Run | None) -> None:
        if run is None or run.is_terminal:
            return
        try:
            await self._provider.cancel_run(run.thread_id, run.id)
        except Exception as e:
            logger.warning(f"Could not cancel run {run.id}: {e}")


def _run_data(run: Run) -> dict[str, Any]:
    data: dict[str, Any] = {"run_id": run.id, "status": str(run.status)}
    if run.last_error is not None:
        data["last_error"] = run.last_error.as_dict()
    return data
