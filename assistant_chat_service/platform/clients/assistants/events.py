"""Normalization of raw provider stream events.

Raw event names follow the provider's wire vocabulary ("thread.run.created",
"thread.message.delta", ...). ``normalize_event`` maps them onto the small
set the streaming driver reasons about, or returns None for events nobody
downstream cares about (run steps, message creation, keep-alives).
"""

from dataclasses import dataclass
from typing import Any

from assistant_chat_service.platform.clients.assistants.exceptions import MalformedEventError
from assistant_chat_service.platform.clients.assistants.provider import (
    message_from_payload,
    run_from_payload,
)
from assistant_chat_service.platform.clients.assistants.records import (
    ProviderEvent,
    Run,
    RunStatus,
    StreamEventType,
    ThreadMessage,
)

_RUN_EVENT_PREFIX = "thread.run."

_TERMINAL_RUN_EVENTS = {
    RunStatus.COMPLETED: StreamEventType.RUN_COMPLETED,
    RunStatus.FAILED: StreamEventType.RUN_FAILED,
    RunStatus.CANCELLED: StreamEventType.RUN_CANCELLED,
    RunStatus.EXPIRED: StreamEventType.RUN_EXPIRED,
    RunStatus.INCOMPLETE: StreamEventType.RUN_FAILED,
}


@dataclass(frozen=True)
class NormalizedEvent:
    """A provider event reduced to what the streaming driver needs.

    Exactly one of ``run``, ``message``, ``text`` or ``error`` is relevant,
    depending on ``type``.
    """

    type: StreamEventType
    run: Run | None = None
    message: ThreadMessage | None = None
    message_id: str | None = None
    text: str | None = None
    error: str | None = None


def terminal_event_type(status: RunStatus) -> StreamEventType | None:
    return _TERMINAL_RUN_EVENTS.get(status)


def normalize_event(event: ProviderEvent) -> NormalizedEvent | None:
    """Map a provider event onto the relay vocabulary.

    Raises:
        MalformedEventError: If a relevant event has an unusable payload
    """
    name = event.name

    if name == "thread.message.delta":
        return _normalize_delta(event)

    if name == "thread.message.completed":
        try:
            message = message_from_payload(event.payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedEventError(name, str(e)) from e
        return NormalizedEvent(
            type=StreamEventType.MESSAGE_COMPLETED, message=message, message_id=message.id
        )

    if name.startswith(_RUN_EVENT_PREFIX) and name.count(".") == 2:
        try:
            run = run_from_payload(event.payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedEventError(name, str(e)) from e
        event_type = terminal_event_type(run.status) or StreamEventType.RUN_STATUS_CHANGED
        return NormalizedEvent(type=event_type, run=run)

    if name == "error":
        return NormalizedEvent(type=StreamEventType.ERROR, error=_error_message(event.payload))

    return None


def _normalize_delta(event: ProviderEvent) -> NormalizedEvent:
    payload = event.payload
    try:
        message_id = payload["id"]
        parts = payload["delta"].get("content") or []
    except (KeyError, TypeError, AttributeError) as e:
        raise MalformedEventError(event.name, str(e)) from e
    if not isinstance(message_id, str) or not isinstance(parts, list):
        raise MalformedEventError(event.name, "unexpected delta shape")

    fragments = []
    for part in parts:
        if isinstance(part, dict) and part.get("type") == "text":
            value = (part.get("text") or {}).get("value")
            if value:
                fragments.append(value)

    return NormalizedEvent(
        type=StreamEventType.MESSAGE_DELTA, message_id=message_id, text="".join(fragments)
    )


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)
