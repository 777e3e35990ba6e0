"""Exception taxonomy for agentfence.

Build-time errors (``ConfigError``, ``MarshalError``, ``NetworkPolicyError``)
abort the enclosing build. Sandbox errors are returned to the agent loop as
ordinary tool-call failures, so their messages stay on a single line.
"""

from __future__ import annotations


class AgentFenceError(Exception):
    """Base class for all agentfence errors."""


# ── Build-time ───────────────────────────────────────────────────────────────


class ConfigError(AgentFenceError, ValueError):
    """An egress or agent configuration value is invalid."""

    def __init__(self, message: str, *, field: str = "", value: str = "", allowed: tuple[str, ...] = ()):
        super().__init__(message)
        self.field = field
        self.value = value
        self.allowed = allowed


class MarshalError(AgentFenceError):
    """The egress allowlist could not be serialized."""


class NetworkPolicyError(AgentFenceError):
    """A NetworkPolicy manifest could not be generated."""


# ── Run-time (sandbox) ───────────────────────────────────────────────────────


class SandboxError(AgentFenceError):
    """Base class for failures raised by the command sandbox."""


class NotAllowedError(SandboxError):
    def __init__(self, binary: str):
        super().__init__(f"cli_execute: binary {binary!r} is not in the allowed list")
        self.binary = binary


class NotFoundError(SandboxError):
    def __init__(self, binary: str):
        super().__init__(f"cli_execute: binary {binary!r} was not found on this system")
        self.binary = binary


class InjectionSuspectedError(SandboxError):
    def __init__(self, index: int, pattern: str, arg: str):
        super().__init__(f"cli_execute: argument {index}: argument contains {pattern}: {arg!r}")
        self.index = index
        self.pattern = pattern


class SandboxTimeoutError(SandboxError, TimeoutError):
    def __init__(self, timeout_seconds: int):
        super().__init__(f"cli_execute: command timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class ExecutionError(SandboxError):
    """The tool input was malformed or the process could not be started."""
