"""HTTP clients for external services.

This module provides clients for communicating with external services,
including hosted LLM assistants.
"""

from assistant_chat_service.platform.clients.assistants import (
    AssistantClientError,
    ChatOrchestrator,
    OpenAIAssistantProvider,
    RunDriverConfig,
    ToolRegistry,
)

__all__ = [
    "AssistantClientError",
    "ChatOrchestrator",
    "OpenAIAssistantProvider",
    "RunDriverConfig",
    "ToolRegistry",
]
