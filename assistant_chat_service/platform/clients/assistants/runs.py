"""Run launching and the one-active-run-per-thread guard."""

import logging

from assistant_chat_service.platform.clients.assistants.exceptions import (
    RunAlreadyActiveError,
    RunLaunchError,
)
from assistant_chat_service.platform.clients.assistants.provider import AssistantProvider
from assistant_chat_service.platform.clients.assistants.records import Run

logger = logging.getLogger(__name__)


class RunLauncher:
    """Starts runs of an assistant against a thread."""

    def __init__(self, provider: AssistantProvider):
        self._provider = provider

    async def ensure_idle(self, thread_id: str) -> None:
        """Refuse to proceed while the thread has a non-terminal run.

        A failure to list runs is logged and tolerated; the provider still
        rejects a conflicting run when it is launched.

        Raises:
            RunAlreadyActiveError: If an active run exists on the thread
        """
        try:
            active = await self._provider.list_active_runs(thread_id)
        except Exception as e:
            logger.warning(f"Could not list runs of thread {thread_id}: {e}")
            return

        if active:
            run = active[0]
            logger.warning(
                f"Thread {thread_id} still has run {run.id} in status {run.status}"
            )
            raise RunAlreadyActiveError(thread_id, run.id, str(run.status))

    async def launch_run(self, thread_id: str, assistant_id: str) -> Run:
        """Launch exactly one run.

        The user's message must already be on the thread.

        Raises:
            RunLaunchError: If the provider rejects the run (not retried)
        """
        try:
            run = await self._provider.create_run(thread_id, assistant_id)
        except Exception as e:
            logger.error(f"Error starting run for assistant {assistant_id}: {e}")
            raise RunLaunchError(assistant_id, thread_id, details=str(e)) from e

        logger.info(
            f"Run {run.id} created for thread {thread_id} with assistant {assistant_id}"
        )
        return run
