"""Configuration for the assistant run orchestration client.

This module provides the configuration dataclass handed to the thread
manager, run launcher, drivers and tool dispatcher, including polling
cadence and tool result bounds.
"""

from dataclasses import dataclass
from enum import StrEnum


class ExecutionStrategy(StrEnum):
    """How a run's progress is observed."""

    POLLING = "polling"
    STREAMING = "streaming"


@dataclass(frozen=True)
class RunDriverConfig:
    """Configuration for run orchestration.

    Attributes:
        poll_interval_seconds: Fixed delay between status fetches (default: 2.0s).
        max_poll_attempts: Maximum number of status re-fetches (default: 45).
        tool_default_limit: Result cap used when a tool call omits one (default: 100).
        tool_max_limit: Hard ceiling for any tool result cap (default: 500).
        tool_min_limit: Floor for any tool result cap (default: 1).
        cancel_on_timeout: Request remote cancellation after a timeout (default: True).
    """

    poll_interval_seconds: float = 2.0
    max_poll_attempts: int = 45
    tool_default_limit: int = 100
    tool_max_limit: int = 500
    tool_min_limit: int = 1
    cancel_on_timeout: bool = True

    def clamp_limit(self, value: object) -> int:
        """Bound a requested result cap to [tool_min_limit, tool_max_limit].

        Missing or non-numeric values fall back to ``tool_default_limit``.
        """
        if value is None or isinstance(value, bool):
            return self.tool_default_limit
        try:
            limit = int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            return self.tool_default_limit
        return max(self.tool_min_limit, min(limit, self.tool_max_limit))
