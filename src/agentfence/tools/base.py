"""Tool interface shared by everything an agent can call."""

from __future__ import annotations

import enum
from typing import Any, Protocol, runtime_checkable


class ToolCategory(str, enum.Enum):
    """Where a tool comes from."""

    BUILTIN = "builtin"
    ADAPTER = "adapter"
    DEV = "dev"
    CUSTOM = "custom"


@runtime_checkable
class Tool(Protocol):
    """Anything the agent runtime can register and invoke by name.

    ``description`` and ``input_schema`` may be computed on access; the
    registry reads them each time it builds definitions.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def category(self) -> ToolCategory: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, arguments: str) -> str: ...


def tool_definition(tool: Tool) -> dict[str, Any]:
    """Convert a tool into an LLM function-tool definition."""
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.input_schema,
        },
    }
