"""Assistant client module for orchestrating runs of remote LLM assistants.

This module drives a conversation turn against a hosted assistant: it creates
or reuses a thread, appends the user's message, launches a run and observes it
to completion.

The module includes:
- Provider port and its OpenAI Assistants implementation
- Polling and streaming completion strategies
- Tool registry and dispatcher for ``requires_action`` runs
- Final reply extraction
"""

from assistant_chat_service.platform.clients.assistants.config import (
    ExecutionStrategy,
    RunDriverConfig,
)
from assistant_chat_service.platform.clients.assistants.dispatcher import ToolDispatcher
from assistant_chat_service.platform.clients.assistants.exceptions import (
    AssistantClientError,
    AssistantNotFoundError,
    AttachmentUploadError,
    ConfigurationError,
    InvalidRequestError,
    MalformedEventError,
    MessageCreationError,
    ResponseExtractionError,
    RunAlreadyActiveError,
    RunFailedError,
    RunLaunchError,
    RunTimeoutError,
    ThreadCreationFailedError,
    UnsupportedRequiredActionError,
)
from assistant_chat_service.platform.clients.assistants.extractor import (
    NO_TEXT_REPLY,
    ResponseExtractor,
)
from assistant_chat_service.platform.clients.assistants.orchestrator import (
    ChatOrchestrator,
    ChatReply,
    ChatRequest,
    PreparedTurn,
)
from assistant_chat_service.platform.clients.assistants.provider import (
    AssistantProvider,
    OpenAIAssistantProvider,
)
from assistant_chat_service.platform.clients.assistants.records import (
    Message,
    Run,
    RunStatus,
    StreamEvent,
    StreamEventType,
)
from assistant_chat_service.platform.clients.assistants.runs import RunLauncher
from assistant_chat_service.platform.clients.assistants.store import ConversationStore
from assistant_chat_service.platform.clients.assistants.threads import ThreadManager
from assistant_chat_service.platform.clients.assistants.tools import RegisteredTool, ToolRegistry

__all__ = [
    # Orchestration
    "ChatOrchestrator",
    "ChatRequest",
    "ChatReply",
    "PreparedTurn",
    "ThreadManager",
    "RunLauncher",
    "ResponseExtractor",
    "NO_TEXT_REPLY",
    # Records
    "Message",
    "Run",
    "RunStatus",
    "StreamEvent",
    "StreamEventType",
    # Config
    "ExecutionStrategy",
    "RunDriverConfig",
    # Provider and store
    "AssistantProvider",
    "OpenAIAssistantProvider",
    "ConversationStore",
    # Tools
    "RegisteredTool",
    "ToolRegistry",
    "ToolDispatcher",
    # Exceptions
    "AssistantClientError",
    "AssistantNotFoundError",
    "AttachmentUploadError",
    "ConfigurationError",
    "InvalidRequestError",
    "MalformedEventError",
    "MessageCreationError",
    "ResponseExtractionError",
    "RunAlreadyActiveError",
    "RunFailedError",
    "RunLaunchError",
    "RunTimeoutError",
    "ThreadCreationFailedError",
    "UnsupportedRequiredActionError",
]
