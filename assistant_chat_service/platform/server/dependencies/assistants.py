"""Assistant orchestration dependencies for FastAPI routes."""

from fastapi import Request

from assistant_chat_service.platform.clients.assistants import (
    ChatOrchestrator,
    ConfigurationError,
    ExecutionStrategy,
    ToolRegistry,
)


def get_orchestrator(request: Request) -> ChatOrchestrator:
    """Get the shared chat orchestrator.

    Raises:
        ConfigurationError: If the completion provider credentials are missing
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise ConfigurationError("Server configuration error: OpenAI API key is missing.")
    return orchestrator


def get_catalog(request: Request):
    """Get the assistant catalog built from settings."""
    return request.app.state.catalog


def get_tool_registry(request: Request) -> ToolRegistry:
    """Get the registry of tools the assistants may call."""
    return request.app.state.tool_registry


def get_default_strategy(request: Request) -> ExecutionStrategy:
    """Get the strategy used when a chat request does not pick one."""
    return getattr(request.app.state, "default_strategy", ExecutionStrategy.POLLING)
