"""cli_execute -- the command sandbox exposed as an agent tool.

The agent sends ``{"binary": ..., "args": [...], "stdin": ...}`` and receives
``{"stdout": ..., "stderr": ..., "exit_code": ..., "truncated": ...}``.
Sandbox errors propagate as ordinary tool-call failures: the agent loop shows
the message to the model, which can choose a different call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from agentfence.errors import ExecutionError
from agentfence.sandbox.config import SandboxConfig
from agentfence.sandbox.executor import CommandSandbox, ExecutionRequest
from agentfence.tools.base import ToolCategory
from agentfence.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from agentfence.config import AgentConfig

logger = logging.getLogger(__name__)

CLI_EXECUTE_TOOL_NAME = "cli_execute"


class CLIExecuteTool:
    """Builtin tool wrapping one CommandSandbox."""

    def __init__(self, config: SandboxConfig, *, sandbox: CommandSandbox | None = None) -> None:
        self._sandbox = sandbox or CommandSandbox(config)

    @property
    def name(self) -> str:
        return CLI_EXECUTE_TOOL_NAME

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.BUILTIN

    @property
    def description(self) -> str:
        return self._sandbox.description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self._sandbox.input_schema

    @property
    def sandbox(self) -> CommandSandbox:
        return self._sandbox

    def availability(self) -> tuple[list[str], list[str]]:
        return self._sandbox.availability()

    async def execute(self, arguments: str) -> str:
        try:
            request = ExecutionRequest.model_validate_json(arguments)
        except ValidationError as exc:
            # Keep only the first problem: tool errors must stay single-line.
            first = exc.errors()[0]
            loc = ".".join(str(p) for p in first.get("loc", ())) or "input"
            raise ExecutionError(
                f"cli_execute: invalid arguments: {loc}: {first.get('msg')}"
            ) from exc

        result = await self._sandbox.execute(request)
        return result.model_dump_json()


def build_registry(config: AgentConfig) -> ToolRegistry:
    """Build the runtime tool registry for an agent.

    Registers ``cli_execute`` when the agent declares it with at least one
    allowed binary.
    """
    registry = ToolRegistry()

    raw = config.tool_config(CLI_EXECUTE_TOOL_NAME)
    if config.has_tool(CLI_EXECUTE_TOOL_NAME):
        sandbox_config = SandboxConfig.from_tool_config(raw)
        if sandbox_config.allowed_binaries:
            tool = CLIExecuteTool(sandbox_config)
            registry.register(tool)
            available, missing = tool.availability()
            logger.info(
                "cli_execute registered: %d available, %d missing", len(available), len(missing)
            )
        else:
            logger.warning("cli_execute declared without allowed_binaries -- not registered")

    return registry
