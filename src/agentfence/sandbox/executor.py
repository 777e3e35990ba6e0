"""CommandSandbox -- run pre-approved binaries without a shell.

Security checks, in the order ``execute()`` applies them:
1. The binary must be in the configured allow set.
2. The binary must have resolved to an absolute path at construction.
3. No argument may contain a disallowed pattern (see ``validation``).
4. The resolved path is spawned directly (no shell) in its own session,
   under a deadline of ``timeout_seconds``.
5. The child environment is built from scratch (see ``env``).
6. stdout/stderr are captured through bounded sinks.
7. On timeout the whole process group is killed before the error is raised.

PATH lookup happens exactly once, in ``__init__``. State written there is
read-only afterwards, so concurrent ``execute()`` calls share nothing but
that immutable state: each call owns its process, environment and sinks.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
from collections.abc import Callable
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

from agentfence.errors import (
    ExecutionError,
    InjectionSuspectedError,
    NotAllowedError,
    NotFoundError,
    SandboxTimeoutError,
)
from agentfence.sandbox.config import SandboxConfig
from agentfence.sandbox.env import build_isolated_env
from agentfence.sandbox.output import BoundedOutputSink
from agentfence.sandbox.validation import validate_args

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


# ── Request / Result Models ──────────────────────────────────────────────────


class ResolvedBinary(BaseModel):
    name: str
    absolute_path: str = ""
    available: bool = False


class ExecutionRequest(BaseModel):
    binary: str = Field(description="The binary to execute (must be from the allowed list)")
    args: list[str] = Field(
        default_factory=list, description="Command-line arguments to pass to the binary"
    )
    stdin: str | None = Field(default=None, description="Optional stdin input to pipe to the process")


class ExecutionResult(BaseModel):
    """Captured output of one run. ``exit_code`` is -1 when a signal ended the child."""

    stdout: str
    stderr: str
    exit_code: int
    truncated: bool = False


# ── Sandbox ──────────────────────────────────────────────────────────────────


class CommandSandbox:
    """Executes allow-listed binaries with env isolation, a deadline and output caps."""

    def __init__(
        self,
        config: SandboxConfig,
        *,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self._config = config
        self._allowed: frozenset[str] = frozenset(config.allowed_binaries)

        resolved: dict[str, ResolvedBinary] = {}
        for name in config.allowed_binaries:
            if name in resolved:
                continue
            path = which(name)
            if path:
                resolved[name] = ResolvedBinary(
                    name=name, absolute_path=os.path.abspath(path), available=True
                )
            else:
                resolved[name] = ResolvedBinary(name=name)
                logger.warning("Sandbox: allowed binary %r not found on PATH", name)

        self._binaries = MappingProxyType(resolved)
        self._available = tuple(n for n, b in resolved.items() if b.available)
        self._missing = tuple(n for n, b in resolved.items() if not b.available)

        logger.info(
            "Sandbox ready: %d available, %d missing (timeout=%ds, max_output=%d bytes)",
            len(self._available),
            len(self._missing),
            config.timeout_seconds,
            config.max_output_bytes,
        )

    # ── Introspection ─────────────────────────────────────────────────────────

    @property
    def config(self) -> SandboxConfig:
        return self._config

    @property
    def binaries(self) -> MappingProxyType[str, ResolvedBinary]:
        return self._binaries

    def availability(self) -> tuple[list[str], list[str]]:
        """Return ``(available, missing)`` binary names in configured order."""
        return list(self._available), list(self._missing)

    @property
    def description(self) -> str:
        """Tool description naming only the binaries verified available."""
        if not self._available:
            return "Execute pre-approved CLI binaries (none available)"
        return f"Execute pre-approved CLI binaries: {', '.join(self._available)}"

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema for tool input. ``binary`` enumerates the full allow set."""
        return {
            "type": "object",
            "properties": {
                "binary": {
                    "type": "string",
                    "description": "The binary to execute (must be from the allowed list)",
                    "enum": list(self._binaries),
                },
                "args": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Command-line arguments to pass to the binary",
                },
                "stdin": {
                    "type": "string",
                    "description": "Optional stdin input to pipe to the process",
                },
            },
            "required": ["binary"],
        }

    # ── Execution ─────────────────────────────────────────────────────────────

    def check_binary(self, binary: str) -> str:
        """Return the absolute path for ``binary`` or raise NotAllowed/NotFound."""
        if binary not in self._allowed:
            logger.warning("Sandbox: rejected binary %r (not allowed)", binary)
            raise NotAllowedError(binary)
        resolved = self._binaries[binary]
        if not resolved.available:
            logger.warning("Sandbox: rejected binary %r (not found)", binary)
            raise NotFoundError(binary)
        return resolved.absolute_path

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run one allow-listed command and return its captured output.

        A non-zero exit status is a normal result, not an error.

        Raises:
            NotAllowedError: binary is outside the allow set.
            NotFoundError: binary is allowed but was not found on PATH.
            InjectionSuspectedError: an argument contains a disallowed pattern.
            SandboxTimeoutError: the deadline elapsed; the process group was killed.
            ExecutionError: the process could not be started.
        """
        abs_path = self.check_binary(request.binary)
        try:
            validate_args(request.args)
        except InjectionSuspectedError as exc:
            logger.warning(
                "Sandbox: rejected argument %d for %r (%s)", exc.index, request.binary, exc.pattern
            )
            raise

        env = build_isolated_env(self._config.env_passthrough)
        stdout_sink = BoundedOutputSink(self._config.max_output_bytes)
        stderr_sink = BoundedOutputSink(self._config.max_output_bytes)
        stdin_data = request.stdin.encode("utf-8") if request.stdin is not None else None

        try:
            proc = await asyncio.create_subprocess_exec(
                abs_path,
                *request.args,
                stdin=asyncio.subprocess.PIPE if stdin_data is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            # ValueError: an argument or env value holds an embedded NUL byte.
            raise ExecutionError(f"cli_execute: failed to run command: {exc}") from exc

        finished = False
        try:
            await asyncio.wait_for(
                _communicate(proc, stdin_data, stdout_sink, stderr_sink),
                timeout=self._config.timeout_seconds,
            )
            finished = True
        except asyncio.TimeoutError:
            logger.warning(
                "Sandbox: %r timed out after %ds -- killing process group %d",
                request.binary,
                self._config.timeout_seconds,
                proc.pid,
            )
            raise SandboxTimeoutError(self._config.timeout_seconds) from None
        finally:
            if not finished:
                await _kill_process_group(proc)

        truncated = stdout_sink.truncated or stderr_sink.truncated
        if truncated:
            logger.info(
                "Sandbox: output of %r truncated at %d bytes",
                request.binary,
                self._config.max_output_bytes,
            )

        return ExecutionResult(
            stdout=stdout_sink.text(),
            stderr=stderr_sink.text(),
            exit_code=_exit_code(proc.returncode),
            truncated=truncated,
        )


# ── Process helpers ──────────────────────────────────────────────────────────


def _exit_code(returncode: int | None) -> int:
    # asyncio reports death by signal N as -N; callers only see -1.
    if returncode is None or returncode < 0:
        return -1
    return returncode


async def _communicate(
    proc: asyncio.subprocess.Process,
    stdin_data: bytes | None,
    stdout_sink: BoundedOutputSink,
    stderr_sink: BoundedOutputSink,
) -> None:
    tasks = [_drain(proc.stdout, stdout_sink), _drain(proc.stderr, stderr_sink)]
    if stdin_data is not None and proc.stdin is not None:
        tasks.append(_feed(proc.stdin, stdin_data))
    await asyncio.gather(*tasks)
    await proc.wait()


async def _drain(stream: asyncio.StreamReader | None, sink: BoundedOutputSink) -> None:
    # Keep reading past the cap so the child never blocks on a full pipe.
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        sink.write(chunk)


async def _feed(stream: asyncio.StreamWriter, data: bytes) -> None:
    try:
        stream.write(data)
        await stream.drain()
    except (BrokenPipeError, ConnectionResetError):
        logger.debug("Sandbox: child closed stdin before reading all input")
    finally:
        stream.close()


async def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL the child's whole session so no descendant outlives the deadline."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass  # group already gone
    except PermissionError:
        if proc.returncode is None:
            proc.kill()
    if proc.returncode is None:
        await proc.wait()
