"""Custom exception hierarchy for assistant run orchestration.

Every exception carries the HTTP status it maps to and optional structured
details, so the HTTP layer can render a well-formed error payload without
knowing about individual failure modes.
"""

from typing import Any


class AssistantClientError(Exception):
    """Base exception for all assistant orchestration errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Any = None,
        thread_id: str | None = None,
    ):
        self.message = message
        self.details = details
        self.thread_id = thread_id
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        if self.thread_id:
            payload["threadId"] = self.thread_id
        return payload


class ConfigurationError(AssistantClientError):
    """Raised when credentials or required configuration are missing."""


class InvalidRequestError(AssistantClientError):
    """Raised when an inbound chat request fails validation."""

    status_code = 400


class AssistantNotFoundError(AssistantClientError):
    """Raised when the requested assistant is not in the catalog."""

    status_code = 404

    def __init__(self, assistant_ref: str):
        self.assistant_ref = assistant_ref
        super().__init__(f"Assistant not found: {assistant_ref}")


class ThreadCreationFailedError(AssistantClientError):
    """Raised when the provider cannot create a conversation thread."""

    def __init__(self, details: Any = None):
        super().__init__(
            "Could not create conversation with the assistant", details=details
        )


class MessageCreationError(AssistantClientError):
    """Raised when the user's message cannot be appended to the thread."""

    def __init__(self, thread_id: str, details: Any = None):
        super().__init__(
            "Could not send message to the assistant",
            details=details,
            thread_id=thread_id,
        )


class AttachmentUploadError(AssistantClientError):
    """Raised when an attached image cannot be decoded or uploaded."""

    def __init__(self, details: Any = None, thread_id: str | None = None):
        super().__init__(
            "Error processing attached image", details=details, thread_id=thread_id
        )


class RunAlreadyActiveError(AssistantClientError):
    """Raised when a thread already has a run that has not finished."""

    status_code = 409

    def __init__(self, thread_id: str, run_id: str, status: str):
        self.run_id = run_id
        self.status = status
        super().__init__(
            f"Thread {thread_id} already has an active run ({run_id}, {status})",
            details={"run_id": run_id, "status": status},
            thread_id=thread_id,
        )


class RunLaunchError(AssistantClientError):
    """Raised when the provider rejects a new run."""

    def __init__(self, assistant_id: str, thread_id: str, details: Any = None):
        self.assistant_id = assistant_id
        super().__init__(
            "Could not start processing with the assistant",
            details=details,
            thread_id=thread_id,
        )


class RunTimeoutError(AssistantClientError):
    """Raised when a run is still active after the polling budget."""

    status_code = 504

    def __init__(self, run_id: str, status: str, attempts: int, thread_id: str | None = None):
        self.run_id = run_id
        self.status = status
        self.attempts = attempts
        super().__init__(
            f"Assistant run did not finish after {attempts} status checks "
            f"(last status: {status})",
            details={"run_id": run_id, "status": status},
            thread_id=thread_id,
        )


class UnsupportedRequiredActionError(AssistantClientError):
    """Raised when a run requires an action kind this service cannot perform."""

    status_code = 501

    def __init__(self, action_kind: str, run_id: str, thread_id: str | None = None):
        self.action_kind = action_kind
        self.run_id = run_id
        super().__init__(
            f"The assistant requires an unsupported action: {action_kind}",
            details={"run_id": run_id, "action": action_kind},
            thread_id=thread_id,
        )


class RunFailedError(AssistantClientError):
    """Raised when a run ends in failed, cancelled or expired.

    The provider's diagnostic message is reported verbatim, suffixed with its
    error code when one is present.
    """

    def __init__(
        self,
        run_id: str,
        status: str,
        error_message: str | None = None,
        error_code: str | None = None,
        thread_id: str | None = None,
    ):
        self.run_id = run_id
        self.status = status
        self.error_code = error_code
        message = error_message or f"Assistant execution failed or incomplete ({status})."
        if error_code:
            message = f"{message} (Code: {error_code})"
        details = None
        if error_message or error_code:
            details = {"code": error_code, "message": error_message}
        super().__init__(message, details=details, thread_id=thread_id)


class ResponseExtractionError(AssistantClientError):
    """Raised when the final assistant reply cannot be retrieved."""

    def __init__(self, reason: str, thread_id: str | None = None):
        super().__init__(
            "Could not get final response from the assistant",
            details=reason,
            thread_id=thread_id,
        )


class MalformedEventError(AssistantClientError):
    """Raised when a streamed provider event cannot be normalized."""

    def __init__(self, event_name: str, reason: str):
        self.event_name = event_name
        super().__init__(f"Malformed '{event_name}' event: {reason}")
