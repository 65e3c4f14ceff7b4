"""Conversation Store interface the orchestration engine writes to."""

import logging
from typing import Protocol

from assistant_chat_service.platform.clients.assistants.records import Message

logger = logging.getLogger(__name__)


class ConversationStore(Protocol):
    """Append-only message log. The engine writes to it and never reads back."""

    async def insert(self, message: Message) -> None: ...


async def persist_quietly(store: ConversationStore | None, message: Message) -> bool:
    """Insert a message, logging and swallowing any failure.

    Persistence is a side effect of a conversation, never a control-flow
    dependency of it.

    Returns:
        True if the message was stored, False otherwise
    """
    if store is None:
        return False
    try:
        await store.insert(message)
        return True
    except Exception:
        logger.exception(
            f"Failed to persist {message.role} message {message.id} "
            f"for thread {message.thread_id}"
        )
        return False
