"""Tests for CommandSandbox execution against real POSIX binaries."""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
import time
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agentfence.errors import (
    ExecutionError,
    InjectionSuspectedError,
    NotAllowedError,
    NotFoundError,
    SandboxError,
    SandboxTimeoutError,
)
from agentfence.sandbox.config import SandboxConfig
from agentfence.sandbox.executor import CommandSandbox, ExecutionRequest
from agentfence.tools.cli_execute import CLIExecuteTool

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX process semantics")

MISSING_BINARY = "agentfence-definitely-not-installed"


def requires(*binaries: str):
    missing = [b for b in binaries if shutil.which(b) is None]
    return pytest.mark.skipif(bool(missing), reason=f"missing binaries: {missing}")


def _process_gone(pid: int) -> bool:
    """True if ``pid`` no longer runs (absent, or a zombie awaiting reaping)."""
    if Path("/proc/self").exists():
        try:
            stat = Path(f"/proc/{pid}/stat").read_text()
        except FileNotFoundError:
            return True
        return stat.rsplit(")", 1)[1].split()[0] in ("Z", "X")
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    return False


def _wait_gone(pid: int, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if _process_gone(pid):
            return True
        time.sleep(0.05)
    return _process_gone(pid)


# -- Construction -----------------------------------------------------------


class TestResolution:
    @requires("echo")
    def test_partition_available_and_missing(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo", MISSING_BINARY]))
        available, missing = sandbox.availability()
        assert available == ["echo"]
        assert missing == [MISSING_BINARY]
        assert sandbox.binaries["echo"].available is True
        assert os.path.isabs(sandbox.binaries["echo"].absolute_path)
        assert sandbox.binaries[MISSING_BINARY].available is False
        assert sandbox.binaries[MISSING_BINARY].absolute_path == ""

    def test_duplicates_resolved_once(self):
        which = MagicMock(return_value="/bin/echo")
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo", "echo"]), which=which)
        assert which.call_count == 1
        assert sandbox.availability() == (["echo"], [])

    @requires("echo")
    @pytest.mark.asyncio
    async def test_path_lookup_happens_only_at_construction(self):
        which = MagicMock(side_effect=shutil.which)
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"]), which=which)
        assert which.call_count == 1
        await sandbox.execute(ExecutionRequest(binary="echo", args=["one"]))
        await sandbox.execute(ExecutionRequest(binary="echo", args=["two"]))
        assert which.call_count == 1

    def test_description_lists_only_available(self):
        which = MagicMock(side_effect=lambda n: "/usr/bin/git" if n == "git" else None)
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["git", "kubectl"]), which=which)
        assert sandbox.description == "Execute pre-approved CLI binaries: git"
        assert "kubectl" not in sandbox.description

    def test_description_when_none_available(self):
        sandbox = CommandSandbox(
            SandboxConfig(allowed_binaries=["kubectl"]), which=MagicMock(return_value=None)
        )
        assert sandbox.description == "Execute pre-approved CLI binaries (none available)"

    def test_schema_enumerates_full_allow_set(self):
        which = MagicMock(side_effect=lambda n: "/usr/bin/git" if n == "git" else None)
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["git", "kubectl"]), which=which)
        schema = sandbox.input_schema
        assert schema["properties"]["binary"]["enum"] == ["git", "kubectl"]
        assert schema["properties"]["args"]["type"] == "array"
        assert schema["properties"]["stdin"]["type"] == "string"
        assert schema["required"] == ["binary"]


# -- Rejections -------------------------------------------------------------


class TestRejections:
    @pytest.mark.asyncio
    async def test_not_allowed_even_if_binary_exists(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"]))
        with pytest.raises(NotAllowedError, match="not in the allowed list"):
            await sandbox.execute(ExecutionRequest(binary="ls"))

    @pytest.mark.asyncio
    async def test_not_allowed_for_nonexistent_binary(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"]))
        with pytest.raises(NotAllowedError):
            await sandbox.execute(ExecutionRequest(binary=MISSING_BINARY))

    @pytest.mark.asyncio
    async def test_not_found(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=[MISSING_BINARY]))
        with pytest.raises(NotFoundError, match="not found on this system"):
            await sandbox.execute(ExecutionRequest(binary=MISSING_BINARY))

    @pytest.mark.asyncio
    async def test_allow_check_precedes_argument_check(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"]))
        with pytest.raises(NotAllowedError):
            await sandbox.execute(ExecutionRequest(binary="rm", args=["$(whoami)"]))

    @pytest.mark.asyncio
    async def test_not_found_precedes_argument_check(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=[MISSING_BINARY]))
        with pytest.raises(NotFoundError):
            await sandbox.execute(ExecutionRequest(binary=MISSING_BINARY, args=["`id`"]))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arg", ["$(whoami)", "`id`", "a\nb", "a\rb"])
    async def test_injection_rejected_before_spawn(self, arg):
        which = MagicMock(return_value="/bin/echo")
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"]), which=which)
        spawn = AsyncMock()
        with patch("agentfence.sandbox.executor.asyncio.create_subprocess_exec", spawn):
            with pytest.raises(InjectionSuspectedError):
                await sandbox.execute(ExecutionRequest(binary="echo", args=["ok", arg]))
        spawn.assert_not_called()

    @requires("echo")
    @pytest.mark.asyncio
    async def test_nul_byte_argument_is_execution_error(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"]))
        with pytest.raises(ExecutionError, match="failed to run command"):
            await sandbox.execute(ExecutionRequest(binary="echo", args=["a\x00b"]))

    @requires("echo")
    @pytest.mark.asyncio
    async def test_nul_byte_through_tool_stays_a_sandbox_error(self):
        tool = CLIExecuteTool(SandboxConfig(allowed_binaries=["echo"]))
        with pytest.raises(SandboxError):
            await tool.execute('{"binary": "echo", "args": ["a\\u0000b"]}')


# -- Execution --------------------------------------------------------------


class TestExecution:
    @requires("echo")
    @pytest.mark.asyncio
    async def test_echo(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"]))
        result = await sandbox.execute(ExecutionRequest(binary="echo", args=["hello"]))
        assert result.exit_code == 0
        assert "hello" in result.stdout
        assert result.truncated is False

    @requires("sh")
    @pytest.mark.asyncio
    async def test_nonzero_exit_is_a_result(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sh"]))
        result = await sandbox.execute(
            ExecutionRequest(binary="sh", args=["-c", "echo oops >&2; exit 3"])
        )
        assert result.exit_code == 3
        assert "oops" in result.stderr

    @requires("sh")
    @pytest.mark.asyncio
    async def test_signal_death_reports_minus_one(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sh"]))
        result = await sandbox.execute(ExecutionRequest(binary="sh", args=["-c", "kill -9 $$"]))
        assert result.exit_code == -1

    @requires("sh")
    @pytest.mark.asyncio
    async def test_arguments_are_not_shell_interpreted(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sh"]))
        result = await sandbox.execute(
            ExecutionRequest(binary="sh", args=["-c", 'printf "%s" "$0"', "a;b|c"])
        )
        assert result.stdout == "a;b|c"

    @requires("cat")
    @pytest.mark.asyncio
    async def test_stdin(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["cat"]))
        result = await sandbox.execute(ExecutionRequest(binary="cat", stdin="piped input"))
        assert result.stdout == "piped input"

    @requires("cat")
    @pytest.mark.asyncio
    async def test_no_stdin_means_empty_input(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["cat"], timeout_seconds=5))
        result = await sandbox.execute(ExecutionRequest(binary="cat"))
        assert result.stdout == ""
        assert result.exit_code == 0

    @requires("echo")
    @pytest.mark.asyncio
    async def test_stdout_truncated(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["echo"], max_output_bytes=100))
        result = await sandbox.execute(ExecutionRequest(binary="echo", args=["x" * 500]))
        assert result.truncated is True
        assert len(result.stdout.encode()) <= 100
        assert result.exit_code == 0

    @requires("sh")
    @pytest.mark.asyncio
    async def test_stderr_truncated(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sh"], max_output_bytes=10))
        result = await sandbox.execute(
            ExecutionRequest(binary="sh", args=["-c", "echo 0123456789abcdef >&2"])
        )
        assert result.truncated is True
        assert result.stderr == "0123456789"

    @requires("sh", "yes", "head")
    @pytest.mark.asyncio
    async def test_large_output_does_not_break_pipe(self):
        # Child writes 1 MiB past a 16-byte cap and must still exit cleanly.
        sandbox = CommandSandbox(
            SandboxConfig(allowed_binaries=["sh"], max_output_bytes=16, timeout_seconds=20)
        )
        result = await sandbox.execute(
            ExecutionRequest(binary="sh", args=["-c", "yes 0123456789 | head -c 1048576"])
        )
        assert result.exit_code == 0
        assert result.truncated is True
        assert len(result.stdout) == 16
        assert result.stdout == "0123456789\n01234"

    @requires("sleep")
    @pytest.mark.asyncio
    async def test_timeout(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sleep"], timeout_seconds=1))
        start = time.monotonic()
        with pytest.raises(SandboxTimeoutError, match="timed out after 1s"):
            await sandbox.execute(ExecutionRequest(binary="sleep", args=["10"]))
        assert time.monotonic() - start < 5

    @requires("sh", "sleep")
    @pytest.mark.asyncio
    async def test_timeout_kills_process_and_descendants(self, tmp_path: Path):
        pid_file = tmp_path / "pids"
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sh"], timeout_seconds=1))
        with pytest.raises(SandboxTimeoutError):
            await sandbox.execute(
                ExecutionRequest(
                    binary="sh",
                    args=["-c", f"sleep 30 & echo $$ $! > {pid_file}; wait"],
                )
            )
        shell_pid, sleep_pid = (int(p) for p in pid_file.read_text().split())
        assert _wait_gone(shell_pid), "sandboxed shell survived the timeout"
        assert _wait_gone(sleep_pid), "grandchild survived the timeout"

    @requires("sleep")
    @pytest.mark.asyncio
    async def test_timeout_error_is_builtin_timeout(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sleep"], timeout_seconds=1))
        with pytest.raises(TimeoutError):
            await sandbox.execute(ExecutionRequest(binary="sleep", args=["5"]))

    @requires("sh")
    @pytest.mark.asyncio
    async def test_concurrent_executions_are_independent(self):
        sandbox = CommandSandbox(SandboxConfig(allowed_binaries=["sh"]))
        results = await asyncio.gather(
            *(
                sandbox.execute(ExecutionRequest(binary="sh", args=["-c", f"echo {i}; exit {i}"]))
                for i in range(5)
            )
        )
        for i, result in enumerate(results):
            assert result.stdout.strip() == str(i)
            assert result.exit_code == i


# -- Environment ------------------------------------------------------------


class TestChildEnvironment:
    @requires("env")
    @pytest.mark.asyncio
    async def test_child_sees_only_isolated_env(self):
        extra = {
            "AGENTFENCE_TEST_SECRET": "leaked",
            "AGENTFENCE_TEST_PASS": "visible",
            "LANG": "C.UTF-8",
        }
        with patch.dict(os.environ, extra):
            sandbox = CommandSandbox(
                SandboxConfig(
                    allowed_binaries=["env"], env_passthrough=["AGENTFENCE_TEST_PASS", "UNSET_VAR"]
                )
            )
            result = await sandbox.execute(ExecutionRequest(binary="env"))

        names = {line.split("=", 1)[0] for line in result.stdout.splitlines() if "=" in line}
        assert "AGENTFENCE_TEST_SECRET" not in names
        assert "AGENTFENCE_TEST_PASS=visible" in result.stdout.splitlines()
        assert "UNSET_VAR" not in names
        assert names <= {"PATH", "HOME", "LANG", "AGENTFENCE_TEST_PASS"}
