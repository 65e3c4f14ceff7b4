"""Polling completion driver.

Re-fetches the run status at a fixed interval until the run is terminal,
resolving tool calls whenever the run stops in ``requires_action``.
"""

import asyncio
import logging

from assistant_chat_service.platform.clients.assistants.config import RunDriverConfig
from assistant_chat_service.platform.clients.assistants.dispatcher import ToolDispatcher
from assistant_chat_service.platform.clients.assistants.provider import AssistantProvider
from assistant_chat_service.platform.clients.assistants.records import Run, RunStatus
from assistant_chat_service.platform.clients.assistants.strategies.base import (
    RunOutcome,
    Sleep,
    requested_tool_calls,
)
from assistant_chat_service.platform.observability.metrics import POLL_ATTEMPTS

logger = logging.getLogger(__name__)


class PollingDriver:
    """Polling completion driver.

    States ``queued``, ``in_progress`` and ``cancelling`` are re-fetched after
    a fixed delay, at most ``max_poll_attempts`` times. Exhausting the budget
    is reported as a timed-out outcome rather than an exception so the caller
    decides whether to cancel.
    """

    def __init__(
        self,
        provider: AssistantProvider,
        dispatcher: ToolDispatcher,
        config: RunDriverConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize the driver.

        Args:
            provider: Provider used to fetch runs and submit outputs.
            dispatcher: Tool dispatcher for ``requires_action`` episodes.
            config: Optional configuration for polling cadence and budget.
            sleep: Awaitable delay, injectable so tests need no wall clock.
        """
        self._provider = provider
        self._dispatcher = dispatcher
        self._config = config or RunDriverConfig()
        self._sleep = sleep

    async def drive(self, run: Run) -> RunOutcome:
        """Observe a run until it is terminal or the attempt budget runs out.

        Args:
            run: The freshly launched run.

        Returns:
            RunOutcome with the last observed run; ``timed_out`` is set when
            the run was still active after the last permitted re-fetch.

        Raises:
            UnsupportedRequiredActionError: If the run requires an action
                other than submitting tool outputs.
        """
        attempts = 0
        current = await self._fetch(run, attempts)

        while True:
            if current.status == RunStatus.REQUIRES_ACTION:
                await self._resolve_required_action(current)
            elif current.is_terminal:
                break

            if attempts >= self._config.max_poll_attempts:
                logger.warning(
                    f"Run {current.id} still {current.status} after {attempts} attempts"
                )
                POLL_ATTEMPTS.observe(attempts)
                return RunOutcome(run=current, attempts=attempts, timed_out=True)

            await self._sleep(self._config.poll_interval_seconds)
            attempts += 1
            logger.debug(
                f"Waiting for run ({current.thread_id}/{current.id}). "
                f"Attempt {attempts}. Status: {current.status}"
            )
            current = await self._fetch(current, attempts)

        logger.info(f"Run {current.id} finished with status: {current.status}")
        POLL_ATTEMPTS.observe(attempts)
        return RunOutcome(run=current, attempts=attempts)

    async def _fetch(self, last_seen: Run, attempt: int) -> Run:
        """Fetch the run, keeping the last observation on transport errors."""
        try:
            return await self._provider.retrieve_run(last_seen.thread_id, last_seen.id)
        except Exception as e:
            logger.error(
                f"Error retrieving status of run {last_seen.id} (attempt {attempt}): {e}"
            )
            return last_seen

    async def _resolve_required_action(self, run: Run) -> None:
        """Answer every pending tool call and submit the outputs as one batch.

        A failed submission is logged only; the next observation re-derives
        the run status, which may re-enter ``requires_action``.
        """
        tool_calls = requested_tool_calls(run)
        logger.info(f"Run {run.id} requires {len(tool_calls)} tool call(s)")

        outputs = await self._dispatcher.dispatch(tool_calls)
        try:
            await self._provider.submit_tool_outputs(run.thread_id, run.id, outputs)
        except Exception as e:
            logger.error(f"Error submitting tool outputs for run {run.id}: {e}")
            return
        logger.info(f"Submitted {len(outputs)} tool output(s) for run {run.id}")
