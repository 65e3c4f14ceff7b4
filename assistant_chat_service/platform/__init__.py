"""Service infrastructure module.

This module provides the infrastructure the chat endpoints are built on:
- Assistant run orchestration client (threads, runs, tools, drivers)
- FastAPI server configuration
- Database and observability utilities
"""

from assistant_chat_service.platform.clients.assistants import (
    ChatOrchestrator,
    OpenAIAssistantProvider,
    RunDriverConfig,
    ToolRegistry,
)
from assistant_chat_service.platform.settings import Settings

__all__ = [
    "ChatOrchestrator",
    "OpenAIAssistantProvider",
    "RunDriverConfig",
    "Settings",
    "ToolRegistry",
]
