"""Completion provider port and its OpenAI Assistants implementation.

The rest of the orchestration code depends only on ``AssistantProvider``;
``OpenAIAssistantProvider`` converts SDK objects into the plain records of
``records.py`` so that nothing downstream keeps SDK state around.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from openai import AsyncOpenAI

from assistant_chat_service.platform.clients.assistants.records import (
    ContentPart,
    ProviderEvent,
    RequiredAction,
    Run,
    RunError,
    RunStatus,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)

logger = logging.getLogger(__name__)


class AssistantProvider(Protocol):
    """Operations the orchestration engine needs from a completion provider."""

    async def create_thread(self, metadata: dict[str, str] | None = None) -> str: ...

    async def upload_image(self, data: bytes, filename: str, mime_type: str) -> str: ...

    async def add_user_message(
        self, thread_id: str, text: str | None, file_ids: Sequence[str] = ()
    ) -> str: ...

    async def create_run(self, thread_id: str, assistant_id: str) -> Run: ...

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run: ...

    async def cancel_run(self, thread_id: str, run_id: str) -> Run: ...

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: Sequence[ToolOutput]
    ) -> Run: ...

    async def list_active_runs(self, thread_id: str) -> list[Run]: ...

    async def list_messages(
        self, thread_id: str, run_id: str | None = None
    ) -> list[ThreadMessage]: ...

    def stream_run(self, thread_id: str, assistant_id: str) -> AsyncIterator[ProviderEvent]: ...

    def stream_tool_outputs(
        self, thread_id: str, run_id: str, outputs: Sequence[ToolOutput]
    ) -> AsyncIterator[ProviderEvent]: ...


# =============================================================================
# Payload mapping
# =============================================================================


def to_dict(obj: Any) -> dict[str, Any]:
    """Return a plain dict for an SDK model or a dict payload."""
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    raise TypeError(f"Unsupported payload type: {type(obj).__name__}")


def run_from_payload(obj: Any) -> Run:
    """Build a Run record from an SDK run object or its dict form.

    Raises:
        KeyError: If the payload has no id, thread_id or status
        ValueError: If the status is unknown
    """
    data = to_dict(obj)
    required_action = None
    raw_action = data.get("required_action")
    if raw_action:
        kind = raw_action.get("type") or "unknown"
        tool_calls: tuple[ToolCall, ...] = ()
        submit = raw_action.get("submit_tool_outputs") or {}
        if submit:
            tool_calls = tuple(
                ToolCall(
                    id=call["id"],
                    name=(call.get("function") or {}).get("name", ""),
                    arguments=(call.get("function") or {}).get("arguments") or "",
                )
                for call in submit.get("tool_calls") or []
            )
        required_action = RequiredAction(kind=kind, tool_calls=tool_calls)

    last_error = None
    raw_error = data.get("last_error")
    if raw_error:
        last_error = RunError(code=raw_error.get("code"), message=raw_error.get("message"))

    return Run(
        id=data["id"],
        thread_id=data["thread_id"],
        status=RunStatus(data["status"]),
        required_action=required_action,
        last_error=last_error,
    )


def message_from_payload(obj: Any) -> ThreadMessage:
    """Build a ThreadMessage record from an SDK message or its dict form."""
    data = to_dict(obj)
    parts = []
    for part in data.get("content") or []:
        part_type = part.get("type", "")
        text = None
        if part_type == "text":
            text = (part.get("text") or {}).get("value")
        parts.append(ContentPart(type=part_type, text=text))

    created_at = None
    if data.get("created_at") is not None:
        created_at = datetime.fromtimestamp(int(data["created_at"]), tz=UTC)

    return ThreadMessage(
        id=data["id"],
        thread_id=data["thread_id"],
        role=data["role"],
        content=tuple(parts),
        run_id=data.get("run_id"),
        created_at=created_at,
    )


# =============================================================================
# OpenAI implementation
# =============================================================================


class OpenAIAssistantProvider:
    """AssistantProvider backed by the OpenAI Assistants API."""

    def __init__(self, client: AsyncOpenAI):
        """Initialize the provider.

        Args:
            client: Configured async OpenAI client (owned by the caller)
        """
        self._client = client

    async def create_thread(self, metadata: dict[str, str] | None = None) -> str:
        thread = await self._client.beta.threads.create(metadata=metadata or {})
        return thread.id

    async def upload_image(self, data: bytes, filename: str, mime_type: str) -> str:
        file_object = await self._client.files.create(
            file=(filename, data, mime_type),
            purpose="vision",
        )
        return file_object.id

    async def add_user_message(
        self, thread_id: str, text: str | None, file_ids: Sequence[str] = ()
    ) -> str:
        content: list[dict[str, Any]] = []
        if text:
            content.append({"type": "text", "text": text})
        for file_id in file_ids:
            content.append({"type": "image_file", "image_file": {"file_id": file_id}})

        message = await self._client.beta.threads.messages.create(
            thread_id,
            role="user",
            content=content,  # type: ignore[arg-type]
        )
        return message.id

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        run = await self._client.beta.threads.runs.create(thread_id, assistant_id=assistant_id)
        return run_from_payload(run)

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        run = await self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
        return run_from_payload(run)

    async def cancel_run(self, thread_id: str, run_id: str) -> Run:
        run = await self._client.beta.threads.runs.cancel(run_id, thread_id=thread_id)
        return run_from_payload(run)

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: Sequence[ToolOutput]
    ) -> Run:
        run = await self._client.beta.threads.runs.submit_tool_outputs(
            run_id,
            thread_id=thread_id,
            tool_outputs=[o.as_provider_param() for o in outputs],  # type: ignore[misc]
        )
        return run_from_payload(run)

    async def list_active_runs(self, thread_id: str) -> list[Run]:
        page = await self._client.beta.threads.runs.list(thread_id, limit=10, order="desc")
        runs = [run_from_payload(r) for r in page.data]
        return [r for r in runs if not r.is_terminal]

    async def list_messages(
        self, thread_id: str, run_id: str | None = None
    ) -> list[ThreadMessage]:
        params: dict[str, Any] = {"order": "asc"}
        if run_id:
            params["run_id"] = run_id
        messages = []
        async for message in self._client.beta.threads.messages.list(thread_id, **params):
            messages.append(message_from_payload(message))
        return messages

    async def stream_run(self, thread_id: str, assistant_id: str) -> AsyncIterator[ProviderEvent]:
        stream = await self._client.beta.threads.runs.create(
            thread_id, assistant_id=assistant_id, stream=True
        )
        try:
            async for event in stream:
                yield ProviderEvent(name=event.event, payload=_event_payload(event.data))
        finally:
            await stream.close()

    async def stream_tool_outputs(
        self, thread_id: str, run_id: str, outputs: Sequence[ToolOutput]
    ) -> AsyncIterator[ProviderEvent]:
        stream = await self._client.beta.threads.runs.submit_tool_outputs(
            run_id,
            thread_id=thread_id,
            tool_outputs=[o.as_provider_param() for o in outputs],  # type: ignore[misc]
            stream=True,
        )
        try:
            async for event in stream:
                yield ProviderEvent(name=event.event, payload=_event_payload(event.data))
        finally:
            await stream.close()


def _event_payload(data: Any) -> Any:
    if hasattr(data, "model_dump"):
        return data.model_dump()
    return data
