"""Tool registry mapping tool names to local executors."""

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

ToolExecutor = Callable[[Any], Awaitable[Any]]


def get_json_schema(base_model: type[BaseModel]) -> dict[str, Any]:
    j_schema = base_model.model_json_schema()
    j_schema["additionalProperties"] = False

    if "$defs" in j_schema:
        for v in j_schema["$defs"].values():
            v["additionalProperties"] = False

    return j_schema


@dataclass(frozen=True)
class RegisteredTool:
    """A local function the assistant may call.

    Attributes:
        name: Function name as configured on the remote assistant
        description: Human-readable description sent with the schema
        arguments: Pydantic model the raw JSON arguments are validated against
        executor: Coroutine function receiving the validated arguments
    """

    name: str
    description: str
    arguments: type[BaseModel]
    executor: ToolExecutor

    @property
    def accepts_limit(self) -> bool:
        return "limit" in self.arguments.model_fields

    def schema(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": get_json_schema(self.arguments),
            },
        }


class ToolRegistry:
    """Read-only lookup of tools by name once dispatching starts."""

    def __init__(self, tools: Iterable[RegisteredTool] = ()):
        self._tools: dict[str, RegisteredTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: RegisteredTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return sorted(self._tools)

    def schemas(self) -> list[dict[str, Any]]:
        return [self._tools[name].schema() for name in self.names()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
