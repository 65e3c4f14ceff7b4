"""Final reply extraction for runs observed by polling."""

import logging

from assistant_chat_service.platform.clients.assistants.exceptions import ResponseExtractionError
from assistant_chat_service.platform.clients.assistants.provider import AssistantProvider
from assistant_chat_service.platform.clients.assistants.records import Run, ThreadMessage

logger = logging.getLogger(__name__)

NO_TEXT_REPLY = "No valid text response found from the assistant."


class ResponseExtractor:
    """Retrieves the text an assistant produced during a completed run."""

    def __init__(self, provider: AssistantProvider):
        self._provider = provider

    async def extract(self, run: Run) -> tuple[ThreadMessage, str]:
        """Return the run's last assistant message and its reply text.

        A message without a text part (e.g. image only) is a valid outcome and
        yields ``NO_TEXT_REPLY`` instead of an error.

        Raises:
            ResponseExtractionError: If messages cannot be listed or the run
                produced no assistant message
        """
        try:
            messages = await self._provider.list_messages(run.thread_id, run_id=run.id)
        except Exception as e:
            logger.error(f"Error listing messages from thread {run.thread_id}: {e}")
            raise ResponseExtractionError(str(e), thread_id=run.thread_id) from e

        replies = [m for m in messages if m.role == "assistant" and m.run_id == run.id]
        if not replies:
            raise ResponseExtractionError(
                "The assistant did not generate a response for this run.",
                thread_id=run.thread_id,
            )

        last = replies[-1]
        text = first_text(last)
        if text is None:
            logger.warning(f"Assistant message {last.id} did not contain a text part")
            return last, NO_TEXT_REPLY
        return last, text


def first_text(message: ThreadMessage) -> str | None:
    for part in message.content:
        if part.type == "text" and part.text:
            return part.text
    return None
