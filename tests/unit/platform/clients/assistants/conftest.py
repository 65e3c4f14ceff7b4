"""Shared fixtures for assistant orchestration unit tests.

Provides a stub provider whose every remote operation is an AsyncMock, and
small factories for the records the provider returns.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import BaseModel, Field

from assistant_chat_service.platform.clients.assistants.config import RunDriverConfig
from assistant_chat_service.platform.clients.assistants.records import (
    SUBMIT_TOOL_OUTPUTS,
    ContentPart,
    ProviderEvent,
    RequiredAction,
    Run,
    RunError,
    RunStatus,
    ThreadMessage,
    ToolCall,
)
from assistant_chat_service.platform.clients.assistants.tools import RegisteredTool, ToolRegistry

THREAD_ID = "thread_abc"
RUN_ID = "run_123"


@pytest.fixture
def stub_provider() -> Mock:
    """Create a provider stub with async remote operations."""
    provider = Mock()
    provider.create_thread = AsyncMock(return_value=THREAD_ID)
    provider.upload_image = AsyncMock(return_value="file_img")
    provider.add_user_message = AsyncMock(return_value="msg_user")
    provider.create_run = AsyncMock()
    provider.retrieve_run = AsyncMock()
    provider.cancel_run = AsyncMock()
    provider.submit_tool_outputs = AsyncMock()
    provider.list_active_runs = AsyncMock(return_value=[])
    provider.list_messages = AsyncMock(return_value=[])
    return provider


@pytest.fixture
def make_run() -> Callable[..., Run]:
    """Factory for Run records on the default thread."""

    def factory(
        status: RunStatus | str,
        run_id: str = RUN_ID,
        tool_calls: tuple[ToolCall, ...] | None = None,
        action_kind: str = SUBMIT_TOOL_OUTPUTS,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> Run:
        required_action = None
        if tool_calls is not None:
            required_action = RequiredAction(kind=action_kind, tool_calls=tool_calls)
        last_error = None
        if error_code or error_message:
            last_error = RunError(code=error_code, message=error_message)
        return Run(
            id=run_id,
            thread_id=THREAD_ID,
            status=RunStatus(status),
            required_action=required_action,
            last_error=last_error,
        )

    return factory


@pytest.fixture
def make_message() -> Callable[..., ThreadMessage]:
    """Factory for provider ThreadMessage records."""

    def factory(
        message_id: str = "msg_1",
        role: str = "assistant",
        text: str | None = "Hello",
        run_id: str | None = RUN_ID,
        parts: tuple[ContentPart, ...] | None = None,
    ) -> ThreadMessage:
        if parts is None:
            parts = (ContentPart(type="text", text=text),) if text is not None else ()
        return ThreadMessage(
            id=message_id,
            thread_id=THREAD_ID,
            role=role,
            content=parts,
            run_id=run_id,
            created_at=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        )

    return factory


@pytest.fixture
def make_event() -> Callable[..., ProviderEvent]:
    """Factory for raw provider stream events in the provider's dict shape."""

    def factory(name: str, **payload) -> ProviderEvent:
        return ProviderEvent(name=name, payload=payload)

    return factory


@pytest.fixture
def fast_config() -> RunDriverConfig:
    """Driver config with a small polling budget."""
    return RunDriverConfig(poll_interval_seconds=0.0, max_poll_attempts=3)


class EchoArguments(BaseModel):
    text: str
    limit: int = Field(100, ge=1)


class PlainArguments(BaseModel):
    value: int


@pytest.fixture
def echo_executor() -> AsyncMock:
    """Executor echoing its validated arguments."""

    async def echo(args: EchoArguments):
        return {"text": args.text, "limit": args.limit}

    return AsyncMock(side_effect=echo)


@pytest.fixture
def tool_registry(echo_executor: AsyncMock) -> ToolRegistry:
    """Registry with a limit-accepting tool and a plain one."""

    async def double(args: PlainArguments):
        return args.value * 2

    return ToolRegistry(
        [
            RegisteredTool(
                name="echo",
                description="Echo text back",
                arguments=EchoArguments,
                executor=echo_executor,
            ),
            RegisteredTool(
                name="double",
                description="Double a number",
                arguments=PlainArguments,
                executor=double,
            ),
        ]
    )
