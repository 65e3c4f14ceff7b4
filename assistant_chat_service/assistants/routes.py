"""Assistant chat HTTP endpoints.

This module provides REST API endpoints for chatting with the catalog
assistants, supporting both polling (single JSON reply) and streaming
(Server-Sent Events) modes.
"""

import json
from contextlib import aclosing
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from assistant_chat_service.assistants.catalog import AssistantCatalog
from assistant_chat_service.platform.clients.assistants import (
    ChatOrchestrator,
    ChatRequest,
    ExecutionStrategy,
    PreparedTurn,
    ToolRegistry,
)
from assistant_chat_service.platform.server.dependencies.assistants import (
    get_catalog,
    get_default_strategy,
    get_orchestrator,
    get_tool_registry,
)

assistants_router = APIRouter(tags=["assistants"])


class ChatPayload(BaseModel):
    """Request payload for the chat endpoints.

    Attributes:
        assistant_id: Public id of the catalog assistant
        message: User text; optional when an image is attached
        image_base64: Image as a ``data:image/...;base64,`` URL
        thread_id: Thread returned by a previous turn, null to start a new one
        caller_ref: Opaque caller reference stored with the conversation
        stream: Stream the reply as Server-Sent Events; null uses the configured default
    """

    model_config = ConfigDict(populate_by_name=True)

    assistant_id: str | None = Field(None, alias="assistantId")
    message: str | None = Field(None, max_length=32000)
    image_base64: str | None = Field(None, alias="imageBase64")
    # Type-checked by the orchestrator so a bad value reports "Invalid threadId"
    thread_id: Any = Field(None, alias="threadId")
    caller_ref: str | None = Field(None, alias="callerRef", max_length=128)
    stream: bool | None = None

    def to_request(self) -> ChatRequest:
        return ChatRequest(
            assistant_ref=self.assistant_id,
            message=self.message,
            image_data_url=self.image_base64,
            thread_id=self.thread_id,
            caller_ref=self.caller_ref,
        )


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    thread_id: str = Field(alias="threadId")


class AssistantItem(BaseModel):
    id: str
    name: str
    description: str
    configured: bool


@assistants_router.post("/chat", response_model=ChatResponse)
async def chat_handler(
    payload: ChatPayload,
    orchestrator: Annotated[ChatOrchestrator, Depends(get_orchestrator)],
    default_strategy: Annotated[ExecutionStrategy, Depends(get_default_strategy)],
):
    """Run one chat turn and wait for the assistant's reply.

    Requests with ``stream: true`` (or no ``stream`` flag while the service
    defaults to streaming) are answered as in ``/chat/stream``.

    Args:
        payload: Chat request
        orchestrator: Shared chat orchestrator (injected)
        default_strategy: Strategy used when the payload has no stream flag

    Returns:
        The reply text and the thread id to continue the conversation on
    """
    streaming = payload.stream
    if streaming is None:
        streaming = default_strategy == ExecutionStrategy.STREAMING
    if streaming:
        turn = await orchestrator.prepare(payload.to_request())
        return _event_stream_response(orchestrator, turn)

    result = await orchestrator.reply(payload.to_request())
    return ChatResponse(reply=result.reply, thread_id=result.thread_id)


@assistants_router.post("/chat/stream")
async def chat_stream_handler(
    payload: ChatPayload,
    orchestrator: Annotated[ChatOrchestrator, Depends(get_orchestrator)],
):
    """Run one chat turn, streaming the assistant's output as Server-Sent Events.

    The user's message is appended before the response starts, so request
    errors are still reported as regular JSON error responses. Every stream
    ends with a ``stream.ended`` or ``error`` event.

    Args:
        payload: Chat request
        orchestrator: Shared chat orchestrator (injected)

    Returns:
        StreamingResponse with ``data: {type, data, threadId}`` frames
    """
    turn = await orchestrator.prepare(payload.to_request())
    return _event_stream_response(orchestrator, turn)


def _event_stream_response(orchestrator: ChatOrchestrator, turn: PreparedTurn) -> StreamingResponse:
    async def stream_generator():
        async with aclosing(orchestrator.stream(turn)) as events:  # type: ignore[type-var]
            async for event in events:
                yield f"data: {json.dumps(event.to_payload(), ensure_ascii=False)}\n\n"

    return StreamingResponse(
        stream_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable proxy buffering
        },
    )


@assistants_router.get("/assistants")
async def list_assistants(
    catalog: Annotated[AssistantCatalog, Depends(get_catalog)],
) -> list[AssistantItem]:
    """List the assistants callers may talk to."""
    return [AssistantItem(**entry.as_dict()) for entry in catalog.list()]  # type: ignore[arg-type]


@assistants_router.get("/assistants/tools")
async def list_tools(
    registry: Annotated[ToolRegistry, Depends(get_tool_registry)],
) -> list[dict[str, Any]]:
    """Export function-tool schemas for configuring the remote assistants."""
    return registry.schemas()
