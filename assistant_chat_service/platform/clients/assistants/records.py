"""Provider-agnostic records for threads, runs, tool calls and messages.

Provider SDK objects are converted into these plain records at the provider
seam; no component holds a live handle to a remote object beyond its id.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class RunStatus(StrEnum):
    """Lifecycle states of a remote run."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"


# Statuses that are re-fetched after a delay.
WAITING_STATUSES = frozenset(
    {RunStatus.QUEUED, RunStatus.IN_PROGRESS, RunStatus.CANCELLING}
)

TERMINAL_STATUSES = frozenset(
    {
        RunStatus.COMPLETED,
        RunStatus.FAILED,
        RunStatus.CANCELLED,
        RunStatus.EXPIRED,
        RunStatus.INCOMPLETE,
    }
)

SUBMIT_TOOL_OUTPUTS = "submit_tool_outputs"


@dataclass(frozen=True)
class Thread:
    id: str
    assistant_ref: str
    caller_ref: str | None = None


@dataclass(frozen=True)
class ToolCall:
    """A function call requested by the assistant while a run waits.

    Attributes:
        id: Provider id the output must be keyed to
        name: Registered tool name
        arguments: Raw JSON text as produced by the model
    """

    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class ToolOutput:
    tool_call_id: str
    output: str

    def as_provider_param(self) -> dict[str, str]:
        return {"tool_call_id": self.tool_call_id, "output": self.output}


@dataclass(frozen=True)
class RequiredAction:
    kind: str
    tool_calls: tuple[ToolCall, ...] = ()


@dataclass(frozen=True)
class RunError:
    code: str | None = None
    message: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class Run:
    """Observed state of a run.

    Only the provider mutates a run; this record is a snapshot of one
    observation.
    """

    id: str
    thread_id: str
    status: RunStatus
    required_action: RequiredAction | None = None
    last_error: RunError | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_waiting(self) -> bool:
        return self.status in WAITING_STATUSES


@dataclass(frozen=True)
class ContentPart:
    """One part of a provider message ("text", "image_file", ...)."""

    type: str
    text: str | None = None


@dataclass(frozen=True)
class ThreadMessage:
    """A message as listed back from the provider thread."""

    id: str
    thread_id: str
    role: str
    content: tuple[ContentPart, ...]
    run_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Message:
    """An immutable conversation message handed to the Conversation Store.

    Attributes:
        id: Provider message id (or a local id for user messages)
        thread_id: Provider thread the message belongs to
        role: "user" or "assistant"
        content: Final text content
        created_at: Creation time (UTC)
        run_id: Run that produced the message (assistant messages)
        assistant_ref: Public assistant id the conversation is held with
        caller_ref: Opaque reference of the caller, if any
        attachments: Provider file ids attached to the message
    """

    id: str
    thread_id: str
    role: str
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    run_id: str | None = None
    assistant_ref: str | None = None
    caller_ref: str | None = None
    attachments: tuple[str, ...] = ()


class StreamEventType(StrEnum):
    RUN_STATUS_CHANGED = "run.status-changed"
    MESSAGE_DELTA = "message.delta"
    MESSAGE_COMPLETED = "message.completed"
    RUN_COMPLETED = "run.completed"
    RUN_FAILED = "run.failed"
    RUN_CANCELLED = "run.cancelled"
    RUN_EXPIRED = "run.expired"
    STREAM_ENDED = "stream.ended"
    ERROR = "error"


RUN_TERMINAL_EVENTS = frozenset(
    {
        StreamEventType.RUN_COMPLETED,
        StreamEventType.RUN_FAILED,
        StreamEventType.RUN_CANCELLED,
        StreamEventType.RUN_EXPIRED,
    }
)


@dataclass(frozen=True)
class StreamEvent:
    """Event relayed to the caller during a streaming session."""

    type: StreamEventType
    data: dict[str, Any]
    thread_id: str

    @property
    def is_terminal(self) -> bool:
        return self.type in (StreamEventType.STREAM_ENDED, StreamEventType.ERROR)

    def to_payload(self) -> dict[str, Any]:
        return {"type": str(self.type), "data": self.data, "threadId": self.thread_id}


@dataclass(frozen=True)
class ProviderEvent:
    """A raw event from the provider feed, before normalization."""

    name: str
    payload: Any
