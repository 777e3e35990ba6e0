"""Tool registry -- tools keyed by name, resolved at call time."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Any

from agentfence.tools.base import Tool, tool_definition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Thread-safe mapping of tool name -> Tool."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Add a tool.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        with self._lock:
            if tool.name in self._tools:
                raise ValueError(f"tool already registered: {tool.name!r}")
            self._tools[tool.name] = tool
        logger.debug("Registered tool %s (%s)", tool.name, tool.category.value)

    def get(self, name: str) -> Tool | None:
        with self._lock:
            return self._tools.get(name)

    def list(self) -> list[str]:
        """Registered tool names, sorted."""
        with self._lock:
            return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    async def execute(self, name: str, arguments: str) -> str:
        """Run the named tool with JSON ``arguments``.

        Raises:
            KeyError: If no tool with that name is registered.
        """
        with self._lock:
            tool = self._tools.get(name)
        if tool is None:
            raise KeyError(f"unknown tool: {name!r}")
        return await tool.execute(arguments)

    def filter(self, allowed: Iterable[str]) -> ToolRegistry:
        """Return a new registry holding only the tools named in ``allowed``."""
        allow_set = set(allowed)
        filtered = ToolRegistry()
        with self._lock:
            filtered._tools = {n: t for n, t in self._tools.items() if n in allow_set}
        return filtered

    def tool_definitions(self) -> list[dict[str, Any]]:
        """LLM tool definitions for every registered tool, sorted by name."""
        with self._lock:
            tools = [self._tools[n] for n in sorted(self._tools)]
        return [tool_definition(t) for t in tools]
