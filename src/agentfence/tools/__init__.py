"""Agent tools -- the runtime tool-calling surface.

Tools are registered in a ToolRegistry by name and invoked with JSON
arguments by the agent loop. ``cli_execute`` is the builtin that exposes
the command sandbox.
"""

from agentfence.tools.base import Tool, ToolCategory, tool_definition
from agentfence.tools.cli_execute import CLI_EXECUTE_TOOL_NAME, CLIExecuteTool, build_registry
from agentfence.tools.network_policy import ToolNetworkPolicy, generate_tool_network_policy
from agentfence.tools.registry import ToolRegistry

__all__ = [
    "CLI_EXECUTE_TOOL_NAME",
    "CLIExecuteTool",
    "Tool",
    "ToolCategory",
    "ToolNetworkPolicy",
    "ToolRegistry",
    "build_registry",
    "generate_tool_network_policy",
    "tool_definition",
]
