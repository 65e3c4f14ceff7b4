"""Local tools the remote assistant can call."""

from assistant_chat_service.platform.clients.assistants.tools.registry import (
    RegisteredTool,
    ToolRegistry,
)

__all__ = [
    "RegisteredTool",
    "ToolRegistry",
]
