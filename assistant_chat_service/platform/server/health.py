"""
Health check state and the service metadata served on /info.
"""

import datetime
import os
import platform
import socket
import threading
import time
from typing import Any

from assistant_chat_service.platform.constants import SERVICE_NAME

__all__ = ["HealthCheck", "MetadataManager", "metadata"]


class HealthCheck:
    """Process-wide readiness flag.

    Enabled once the lifespan has wired the orchestrator, cleared when a
    shutdown signal starts draining in-flight chat turns.
    """

    _health_check_enabled = threading.Event()

    @staticmethod
    def enable() -> None:
        HealthCheck._health_check_enabled.set()

    @staticmethod
    def disable() -> None:
        HealthCheck._health_check_enabled.clear()

    @staticmethod
    def status() -> bool:
        return HealthCheck._health_check_enabled.is_set()


class MetadataManager:
    """Container facts plus chat readiness, served on /info.

    Build facts come from the environment at import time. The lifespan adds
    the chat configuration (assistants, default strategy, whether provider
    credentials are present) through ``register_chat``.
    """

    ENV_INFO_KEYS = (
        "BUILD_DATE",
        "BUILD_VERSION",
        "GIT_COMMIT",
        "IMAGE_NAME",
        "SERVICE_ID",
        "PYTHON_VERSION",
    )

    def __init__(self):
        self._started_at = datetime.datetime.now(tz=datetime.UTC).isoformat()
        self._started_ts = time.monotonic()
        self.metadata: dict[str, Any] = {
            key.lower(): os.environ.get(key) for key in self.ENV_INFO_KEYS
        }
        self.metadata["hostname"] = socket.gethostname()
        self.metadata["os_version"] = platform.platform()
        self.metadata["service_name"] = os.environ.get("SERVICE_NAME", SERVICE_NAME)

    def register_chat(
        self, assistant_refs: list[str], chat_enabled: bool, default_strategy: str
    ) -> None:
        """Record what the chat endpoints can serve."""
        self.metadata["chat"] = {
            "enabled": chat_enabled,
            "assistants": sorted(assistant_refs),
            "default_strategy": default_strategy,
        }

    def info(self) -> dict[str, Any]:
        return {
            **self.metadata,
            "started": self._started_at,
            "uptime_seconds": round(time.monotonic() - self._started_ts, 3),
        }


metadata = MetadataManager()
