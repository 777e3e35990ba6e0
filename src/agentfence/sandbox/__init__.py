"""Sandboxed command execution.

An application-level second layer inside an already-isolated container:
- Binary allowlist, resolved against PATH once at startup
- Argument pattern rejection (no shell is ever involved)
- Environment built from scratch -- PATH, HOME, LANG plus explicit passthrough
- Deadline with process-group kill, so nothing outlives a timeout
- Bounded stdout/stderr capture

This is not an OS sandbox: no namespaces, seccomp or cgroups are set up here.
"""

from .config import SandboxConfig
from .env import build_isolated_env
from .executor import CommandSandbox, ExecutionRequest, ExecutionResult, ResolvedBinary
from .output import BoundedOutputSink
from .validation import validate_arg, validate_args

__all__ = [
    "BoundedOutputSink",
    "CommandSandbox",
    "ExecutionRequest",
    "ExecutionResult",
    "ResolvedBinary",
    "SandboxConfig",
    "build_isolated_env",
    "validate_arg",
    "validate_args",
]
