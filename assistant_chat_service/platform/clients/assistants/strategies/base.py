"""Base completion driver interface.

Defines the protocols and common types shared by the polling and streaming
drivers.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from assistant_chat_service.platform.clients.assistants.exceptions import (
    UnsupportedRequiredActionError,
)
from assistant_chat_service.platform.clients.assistants.records import (
    SUBMIT_TOOL_OUTPUTS,
    Run,
    StreamEvent,
    ToolCall,
)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RunOutcome:
    """Last observation of a run once a driver stops watching it.

    Attributes:
        run: Final observed run record
        attempts: Number of status re-fetches performed
        timed_out: True if the re-fetch budget ran out before a terminal state
    """

    run: Run
    attempts: int = 0
    timed_out: bool = False


def requested_tool_calls(run: Run) -> tuple[ToolCall, ...]:
    """Return the calls of a ``requires_action`` run.

    Raises:
        UnsupportedRequiredActionError: If the action is not a tool-output request
    """
    action = run.required_action
    if action is None or action.kind != SUBMIT_TOOL_OUTPUTS:
        kind = action.kind if action else "unknown"
        raise UnsupportedRequiredActionError(kind, run.id, thread_id=run.thread_id)
    return action.tool_calls


class CompletionDriverProtocol(Protocol):
    """Protocol for drivers that wait for a launched run."""

    async def drive(self, run: Run) -> RunOutcome:
        """Observe a run until it is terminal or the budget runs out.

        Args:
            run: The freshly launched run.

        Returns:
            RunOutcome with the last observed run.
        """
        ...


class StreamingDriverProtocol(Protocol):
    """Protocol for drivers that launch a run and relay its events."""

    def stream(self, thread_id: str, assistant_id: str, context: Any) -> AsyncIterator[StreamEvent]:
        """Launch a run and yield relay events until the session ends.

        Yields:
            StreamEvent objects, ending with exactly one terminal event.
        """
        ...
