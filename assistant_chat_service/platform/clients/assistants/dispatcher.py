"""Tool dispatch for runs waiting in ``requires_action``.

Dispatch is total: every requested call is answered with exactly one output,
so a local failure can never leave a run stalled waiting for outputs.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from assistant_chat_service.platform.clients.assistants.config import RunDriverConfig
from assistant_chat_service.platform.clients.assistants.records import ToolCall, ToolOutput
from assistant_chat_service.platform.clients.assistants.tools.registry import ToolRegistry
from assistant_chat_service.platform.observability.metrics import TOOL_CALLS

logger = logging.getLogger(__name__)


def _error_output(call: ToolCall, error: str, detail: Any = None) -> ToolOutput:
    payload: dict[str, Any] = {"error": error}
    if detail is not None:
        payload["detail"] = detail
    return ToolOutput(tool_call_id=call.id, output=json.dumps(payload, ensure_ascii=False))


class ToolDispatcher:
    """Executes requested tool calls against the Tool Registry."""

    def __init__(self, registry: ToolRegistry, config: RunDriverConfig | None = None):
        self._registry = registry
        self._config = config or RunDriverConfig()

    async def dispatch(self, tool_calls: Sequence[ToolCall]) -> list[ToolOutput]:
        """Resolve every tool call of one ``requires_action`` episode.

        Calls are resolved one after another, in request order.

        Args:
            tool_calls: All calls the run is waiting on

        Returns:
            One ToolOutput per call, keyed by call id, in the same order
        """
        outputs = []
        for call in tool_calls:
            outputs.append(await self._resolve(call))
        return outputs

    async def _resolve(self, call: ToolCall) -> ToolOutput:
        try:
            output = await self._execute(call)
        except Exception as e:
            # Anything not already mapped still gets answered.
            logger.exception(f"Unexpected failure dispatching tool call {call.id}")
            TOOL_CALLS.labels(call.name, "error").inc()
            return _error_output(call, "tool execution failed", str(e))
        return output

    async def _execute(self, call: ToolCall) -> ToolOutput:
        tool = self._registry.get(call.name)
        if tool is None:
            logger.warning(f"Assistant requested unknown tool '{call.name}' ({call.id})")
            TOOL_CALLS.labels(call.name, "not_implemented").inc()
            return _error_output(call, "tool not implemented", {"tool": call.name})

        try:
            raw_args = json.loads(call.arguments or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Tool call {call.id} has non-JSON arguments: {e}")
            TOOL_CALLS.labels(call.name, "invalid_arguments").inc()
            return _error_output(call, "invalid arguments", str(e))

        if not isinstance(raw_args, dict):
            TOOL_CALLS.labels(call.name, "invalid_arguments").inc()
            return _error_output(call, "invalid arguments", "arguments must be a JSON object")

        if tool.accepts_limit:
            requested = raw_args.get("limit")
            raw_args["limit"] = self._config.clamp_limit(requested)
            if requested is not None and requested != raw_args["limit"]:
                logger.info(
                    f"Tool call {call.id}: limit {requested} clamped to {raw_args['limit']}"
                )

        try:
            args = tool.arguments.model_validate(raw_args)
        except ValidationError as e:
            logger.warning(f"Tool call {call.id} failed argument validation")
            TOOL_CALLS.labels(call.name, "invalid_arguments").inc()
            return _error_output(
                call,
                "invalid arguments",
                e.errors(include_url=False, include_context=False, include_input=False),
            )

        logger.debug(f"Executing tool '{call.name}' for call {call.id}")
        try:
            result = await tool.executor(args)
        except Exception as e:
            logger.error(f"Tool '{call.name}' failed for call {call.id}: {e}")
            TOOL_CALLS.labels(call.name, "error").inc()
            return _error_output(call, "tool execution failed", str(e))

        TOOL_CALLS.labels(call.name, "ok").inc()
        output = result if isinstance(result, str) else json.dumps(result, ensure_ascii=False, default=str)
        return ToolOutput(tool_call_id=call.id, output=output)
