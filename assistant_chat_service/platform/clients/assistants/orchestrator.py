"""Chat turn orchestration.

Wires the thread manager, run launcher, completion drivers, tool dispatcher
and response extractor into one request/response cycle:

    validate -> resolve assistant -> resolve thread -> guard active run
    -> upload image -> append user message -> launch run -> drive run
    -> extract reply (polling) or relay events (streaming)
"""

import asyncio
import base64
import binascii
import logging
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

from assistant_chat_service.platform.clients.assistants.config import RunDriverConfig
from assistant_chat_service.platform.clients.assistants.dispatcher import ToolDispatcher
from assistant_chat_service.platform.clients.assistants.exceptions import (
    AttachmentUploadError,
    InvalidRequestError,
    MessageCreationError,
    RunFailedError,
    RunTimeoutError,
    UnsupportedRequiredActionError,
)
from assistant_chat_service.platform.clients.assistants.extractor import ResponseExtractor
from assistant_chat_service.platform.clients.assistants.provider import AssistantProvider
from assistant_chat_service.platform.clients.assistants.records import (
    Message,
    Run,
    RunStatus,
    StreamEvent,
)
from assistant_chat_service.platform.clients.assistants.runs import RunLauncher
from assistant_chat_service.platform.clients.assistants.store import (
    ConversationStore,
    persist_quietly,
)
from assistant_chat_service.platform.clients.assistants.strategies import (
    CompletionDriverProtocol,
    PollingDriver,
    StreamContext,
    StreamingDriver,
    StreamingDriverProtocol,
)
from assistant_chat_service.platform.clients.assistants.strategies.base import Sleep
from assistant_chat_service.platform.clients.assistants.threads import ThreadManager
from assistant_chat_service.platform.clients.assistants.tools import ToolRegistry
from assistant_chat_service.platform.observability.logging import conversation_context
from assistant_chat_service.platform.observability.metrics import RUNS

logger = logging.getLogger(__name__)

EMPTY_MESSAGE_PLACEHOLDER = "(Attempt to send empty message or with failed image)"

_DATA_URL_RE = re.compile(r"^data:(image/[A-Za-z0-9.+-]+);base64,(.*)$", re.DOTALL)


class AssistantDirectory(Protocol):
    """Maps a public assistant id to the provider assistant id.

    Raises AssistantNotFoundError for unknown ids and ConfigurationError for
    entries without a provider assistant id.
    """

    def provider_assistant_id(self, assistant_ref: str) -> str: ...


@dataclass(frozen=True)
class ImageAttachment:
    data: bytes
    mime_type: str

    @property
    def filename(self) -> str:
        return f"image.{self.mime_type.split('/')[1] or 'bin'}"


@dataclass(frozen=True)
class ChatRequest:
    """An inbound chat turn.

    Attributes:
        assistant_ref: Public id of the assistant to talk to
        message: User text, optional when an image is attached
        image_data_url: ``data:image/...;base64,...`` attachment
        thread_id: Thread of a previous turn; None or blank starts a new one
        caller_ref: Opaque reference of the caller
    """

    assistant_ref: str | None
    message: str | None = None
    image_data_url: str | None = None
    thread_id: Any = None
    caller_ref: str | None = None

    @property
    def text(self) -> str | None:
        if isinstance(self.message, str) and self.message.strip():
            return self.message
        return None

    @property
    def existing_thread_id(self) -> str | None:
        """The previous turn's thread, None when blank or absent."""
        if isinstance(self.thread_id, str) and self.thread_id.strip():
            return self.thread_id.strip()
        return None

    @property
    def has_image(self) -> bool:
        return isinstance(self.image_data_url, str) and self.image_data_url.startswith(
            "data:image"
        )


@dataclass(frozen=True)
class PreparedTurn:
    """A turn whose user message is on the thread, ready for a run."""

    thread_id: str
    assistant_ref: str
    assistant_id: str
    message_id: str
    caller_ref: str | None = None


@dataclass(frozen=True)
class ChatReply:
    reply: str
    thread_id: str
    run_id: str | None = None

    def to_payload(self) -> dict[str, str]:
        return {"reply": self.reply, "threadId": self.thread_id}


def validate_request(request: ChatRequest) -> None:
    """Check a chat request before any remote call is made.

    Raises:
        InvalidRequestError: On a missing assistant id, no usable content, or
            a thread id that is neither a string nor null
    """
    if not isinstance(request.assistant_ref, str) or not request.assistant_ref.strip():
        raise InvalidRequestError("assistantId is required")
    if request.text is None and not request.has_image:
        raise InvalidRequestError("Valid text or image is required")
    if request.thread_id is not None and not isinstance(request.thread_id, str):
        raise InvalidRequestError("Invalid threadId")


def decode_image(data_url: str) -> ImageAttachment:
    """Decode a base64 image data URL.

    Raises:
        ValueError: If the URL is not a base64 image data URL
    """
    match = _DATA_URL_RE.match(data_url)
    if match is None:
        raise ValueError("Invalid base64 format for image")
    mime_type, encoded = match.groups()
    try:
        data = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 format for image: {e}") from e
    if not data:
        raise ValueError("Empty image payload")
    return ImageAttachment(data=data, mime_type=mime_type)


class ChatOrchestrator:
    """Runs chat turns against remote assistants.

    One instance is shared by all requests; per-turn state lives in local
    variables and the records passed between steps.
    """

    def __init__(
        self,
        provider: AssistantProvider,
        directory: AssistantDirectory,
        registry: ToolRegistry,
        config: RunDriverConfig | None = None,
        store: ConversationStore | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize the orchestrator and its components.

        Args:
            provider: Completion provider
            directory: Assistant catalog lookup
            registry: Tools the assistant may call
            config: Polling cadence, tool limits, timeout policy
            store: Conversation Store messages are appended to
            sleep: Delay used between status fetches
        """
        self._provider = provider
        self._directory = directory
        self._config = config or RunDriverConfig()
        self._store = store

        dispatcher = ToolDispatcher(registry, self._config)
        self.threads = ThreadManager(provider)
        self.launcher = RunLauncher(provider)
        self.extractor = ResponseExtractor(provider)
        self.polling: CompletionDriverProtocol = PollingDriver(
            provider, dispatcher, self._config, sleep=sleep
        )
        self.streaming: StreamingDriverProtocol = StreamingDriver(
            provider, dispatcher, store=store
        )

    async def prepare(self, request: ChatRequest) -> PreparedTurn:
        """Validate a request and put the user's message on a thread.

        Raises:
            InvalidRequestError: If the request is malformed
            AssistantNotFoundError: If the assistant is not in the catalog
            ConfigurationError: If the catalog entry has no provider id
            ThreadCreationFailedError: If a new thread cannot be created
            RunAlreadyActiveError: If the thread still has an active run
            AttachmentUploadError: If the attached image cannot be processed
            MessageCreationError: If the message cannot be appended
        """
        validate_request(request)
        assistant_ref = request.assistant_ref.strip()  # type: ignore[union-attr]
        assistant_id = self._directory.provider_assistant_id(assistant_ref)

        existing_thread_id = request.existing_thread_id
        thread = await self.threads.resolve_thread(
            assistant_ref,
            existing_thread_id=existing_thread_id,
            caller_ref=request.caller_ref,
        )
        thread_id = thread.id

        with conversation_context(thread_id=thread_id, assistant_ref=assistant_ref):
            if existing_thread_id:
                await self.launcher.ensure_idle(thread_id)

            file_ids: tuple[str, ...] = ()
            if request.has_image:
                file_id = await self._upload_image(request.image_data_url, thread_id)  # type: ignore[arg-type]
                file_ids = (file_id,) if file_id else ()

            text = request.text
            if text is None and not file_ids:
                logger.warning("No content to send (neither valid text nor processed image)")
                text = EMPTY_MESSAGE_PLACEHOLDER

            try:
                message_id = await self._provider.add_user_message(thread_id, text, file_ids)
            except Exception as e:
                logger.error(f"Error adding message to thread {thread_id}: {e}")
                raise MessageCreationError(thread_id, details=str(e)) from e
            logger.info(f"Message added to thread {thread_id}. Attachments: {len(file_ids)}")

            await persist_quietly(
                self._store,
                Message(
                    id=message_id,
                    thread_id=thread_id,
                    role="user",
                    content=text or "",
                    assistant_ref=assistant_ref,
                    caller_ref=request.caller_ref,
                    attachments=file_ids,
                ),
            )

        return PreparedTurn(
            thread_id=thread_id,
            assistant_ref=assistant_ref,
            assistant_id=assistant_id,
            message_id=message_id,
            caller_ref=request.caller_ref,
        )

    async def reply(self, request: ChatRequest) -> ChatReply:
        """Run one turn in polling mode and return the assistant's reply.

        Raises:
            RunLaunchError: If the run cannot be started
            RunTimeoutError: If the run is still active after the budget
            RunFailedError: If the run ends failed, cancelled or expired
            UnsupportedRequiredActionError: If the run needs an unknown action
            ResponseExtractionError: If the reply cannot be retrieved
        """
        turn = await self.prepare(request)

        with conversation_context(thread_id=turn.thread_id, assistant_ref=turn.assistant_ref):
            run = await self.launcher.launch_run(turn.thread_id, turn.assistant_id)
            with conversation_context(run_id=run.id):
                try:
                    outcome = await self.polling.drive(run)
                except UnsupportedRequiredActionError:
                    RUNS.labels("polling", str(RunStatus.REQUIRES_ACTION)).inc()
                    await self._cancel_quietly(run)
                    raise
                except asyncio.CancelledError:
                    logger.warning(f"Caller went away while run {run.id} was active")
                    await self._cancel_quietly(run)
                    raise

                final = outcome.run
                if outcome.timed_out:
                    RUNS.labels("polling", "timeout").inc()
                    if self._config.cancel_on_timeout:
                        await self._cancel_quietly(final)
                    raise RunTimeoutError(
                        final.id, str(final.status), outcome.attempts, thread_id=turn.thread_id
                    )

                RUNS.labels("polling", str(final.status)).inc()
                if final.status != RunStatus.COMPLETED:
                    logger.error(
                        f"Run {final.id} not completed. Final status: {final.status}. "
                        f"Last error: {final.last_error}"
                    )
                    last_error = final.last_error
                    raise RunFailedError(
                        final.id,
                        str(final.status),
                        error_message=last_error.message if last_error else None,
                        error_code=last_error.code if last_error else None,
                        thread_id=turn.thread_id,
                    )

                message, text = await self.extractor.extract(final)
                await persist_quietly(
                    self._store,
                    Message(
                        id=message.id,
                        thread_id=turn.thread_id,
                        role="assistant",
                        content=text,
                        run_id=final.id,
                        assistant_ref=turn.assistant_ref,
                        caller_ref=turn.caller_ref,
                        **({"created_at": message.created_at} if message.created_at else {}),
                    ),
                )

        return ChatReply(reply=text, thread_id=turn.thread_id, run_id=final.id)

    def stream(self, turn: PreparedTurn) -> AsyncIterator[StreamEvent]:
        """Launch a streamed run for a prepared turn and relay its events."""
        context = StreamContext(assistant_ref=turn.assistant_ref, caller_ref=turn.caller_ref)
        return self.streaming.stream(turn.thread_id, turn.assistant_id, context)

    async def _upload_image(self, data_url: str, thread_id: str) -> str:
        try:
            image = decode_image(data_url)
            logger.info(f"Uploading image {image.filename} ({image.mime_type})")
            file_id = await self._provider.upload_image(image.data, image.filename, image.mime_type)
        except Exception as e:
            logger.error(f"Error uploading image: {e}")
            raise AttachmentUploadError(details=str(e), thread_id=thread_id) from e
        logger.info(f"Image uploaded successfully. File ID: {file_id}")
        return file_id

    async def _cancel_quietly(self, run: Run) -> None:
        if run.is_terminal:
            return
        try:
            await self._provider.cancel_run(run.thread_id, run.id)
            logger.info(f"Cancellation requested for run {run.id}")
        except Exception as e:
            logger.warning(f"Could not cancel run {run.id}: {e}")
