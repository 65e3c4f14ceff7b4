"""Conversation thread resolution."""

import logging

from assistant_chat_service.platform.clients.assistants.exceptions import ThreadCreationFailedError
from assistant_chat_service.platform.clients.assistants.provider import AssistantProvider
from assistant_chat_service.platform.clients.assistants.records import Thread

logger = logging.getLogger(__name__)


class ThreadManager:
    """Creates or reuses the provider thread for an (assistant, caller) pair."""

    def __init__(self, provider: AssistantProvider):
        self._provider = provider

    async def resolve_thread(
        self,
        assistant_ref: str,
        existing_thread_id: str | None = None,
        caller_ref: str | None = None,
    ) -> Thread:
        """Return the thread to hold the conversation on.

        A supplied thread id is trusted as-is: no existence check is made and
        a stale id surfaces later as a provider error.

        Args:
            assistant_ref: Public assistant id the conversation is with
            existing_thread_id: Thread id from a previous turn, if any
            caller_ref: Opaque caller reference, recorded as thread metadata

        Returns:
            Thread carrying the provider id and the pair it belongs to

        Raises:
            ThreadCreationFailedError: If the provider cannot create a thread
        """
        if existing_thread_id:
            logger.info(f"Using existing thread {existing_thread_id}")
            return Thread(existing_thread_id, assistant_ref, caller_ref)

        metadata = {"assistant_ref": assistant_ref}
        if caller_ref:
            metadata["caller_ref"] = caller_ref

        try:
            thread_id = await self._provider.create_thread(metadata=metadata)
        except Exception as e:
            logger.error(f"Error creating thread for assistant {assistant_ref}: {e}")
            raise ThreadCreationFailedError(details=str(e)) from e

        logger.info(f"New thread {thread_id} created for assistant {assistant_ref}")
        return Thread(thread_id, assistant_ref, caller_ref)
