"""Completion drivers observing a run until it reaches a terminal state.

Two interchangeable strategies share the Tool Dispatcher: polling the run
status, or relaying the provider's event stream.
"""

from assistant_chat_service.platform.clients.assistants.strategies.base import (
    CompletionDriverProtocol,
    RunOutcome,
    StreamingDriverProtocol,
)
from assistant_chat_service.platform.clients.assistants.strategies.polling import PollingDriver
from assistant_chat_service.platform.clients.assistants.strategies.streaming import (
    StreamContext,
    StreamingDriver,
)

__all__ = [
    "CompletionDriverProtocol",
    "StreamingDriverProtocol",
    "RunOutcome",
    "PollingDriver",
    "StreamingDriver",
    "StreamContext",
]
