"""Conversation history retrieval endpoints.

This module provides an endpoint to read back the messages stored for a
thread, for debugging and reviewing assistant interactions.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from assistant_chat_service.platform.database.repositories import (
    ConversationRepository,
    Pagination,
)
from assistant_chat_service.platform.server.dependencies.db import get_conversation_repository

conversations_router = APIRouter(prefix="/conversations", tags=["conversations"])

MAX_PAGE_SIZE = 100


# =============================================================================
# Response Models
# =============================================================================


class StoredMessageItem(BaseModel):
    """A stored message."""

    id: str
    role: str
    content: str
    created_at: datetime
    run_id: str | None
    assistant_ref: str | None
    caller_ref: str | None
    has_attachments: bool


class ConversationResponse(BaseModel):
    """Paginated messages of one thread, oldest first."""

    thread_id: str
    items: list[StoredMessageItem]
    total: int
    page: int
    page_size: int
    total_pages: int


# =============================================================================
# Endpoints
# =============================================================================


@conversations_router.get("/{thread_id}")
async def get_conversation(
    thread_id: str,
    repo: Annotated[ConversationRepository, Depends(get_conversation_repository)],
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    page_size: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE, description="Items per page")] = 20,
) -> ConversationResponse:
    """Retrieve the stored messages of a thread.

    Args:
        thread_id: Provider thread id
        repo: Conversation repository (injected)
        page: Page number (1-indexed)
        page_size: Number of items per page (max 100)

    Returns:
        One page of the thread's messages in chronological order

    Raises:
        HTTPException: 404 if no message is stored for the thread
    """
    result = await repo.list_thread(thread_id, Pagination(page=page, page_size=page_size))
    if result.total == 0:
        raise HTTPException(status_code=404, detail="Conversation not found")

    return ConversationResponse(
        thread_id=thread_id,
        items=[
            StoredMessageItem(
                id=item.id,
                role=item.role,
                content=item.content,
                created_at=item.created_at,
                run_id=item.run_id,
                assistant_ref=item.assistant_ref,
                caller_ref=item.caller_ref,
                has_attachments=item.has_attachments,
            )
            for item in result.items
        ],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )
