"""Tools exposed to the remote assistants."""

from assistant_chat_service.assistants.tools.search_messages import create_search_messages_tool
from assistant_chat_service.platform.clients.assistants.tools import ToolRegistry
from assistant_chat_service.platform.database.repositories import ConversationRepository


def build_tool_registry(repository: ConversationRepository) -> ToolRegistry:
    """Create the registry of every tool the assistants may call."""
    return ToolRegistry([create_search_messages_tool(repository)])


__all__ = [
    "build_tool_registry",
    "create_search_messages_tool",
]
