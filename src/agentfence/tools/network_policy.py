"""Coarse network requirements derived from the registered tools."""

from __future__ import annotations

from dataclasses import dataclass, field

from agentfence.tools.registry import ToolRegistry

# Tools that make outbound requests on the agent's behalf.
NETWORK_TOOLS: frozenset[str] = frozenset(
    {"http_request", "webhook_call", "mcp_call", "openapi_call", "web_search"}
)


@dataclass
class ToolNetworkPolicy:
    allowed_hosts: list[str] = field(default_factory=list)
    deny_all: bool = False


def generate_tool_network_policy(registry: ToolRegistry) -> ToolNetworkPolicy:
    """Deny all egress unless at least one network-capable tool is registered."""
    has_network_tool = any(name in NETWORK_TOOLS for name in registry.list())
    return ToolNetworkPolicy(deny_all=not has_network_tool)
