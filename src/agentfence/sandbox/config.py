"""Sandbox configuration model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_TIMEOUT_SECONDS = 120
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024  # 1 MiB


class SandboxConfig(BaseModel):
    """Configuration for the command sandbox.

    ``allowed_binaries`` is the complete permitted set; its order is kept so
    descriptions and schemas list binaries the way the agent declared them.
    ``env_passthrough`` holds variable names only, never values.
    """

    allowed_binaries: list[str] = Field(default_factory=list)
    env_passthrough: list[str] = Field(default_factory=list)
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES

    @field_validator("timeout_seconds", mode="before")
    @classmethod
    def _normalize_timeout(cls, v: Any) -> int:
        return _positive_int(v, DEFAULT_TIMEOUT_SECONDS)

    @field_validator("max_output_bytes", mode="before")
    @classmethod
    def _normalize_max_output(cls, v: Any) -> int:
        return _positive_int(v, DEFAULT_MAX_OUTPUT_BYTES)

    @classmethod
    def from_tool_config(cls, raw: dict[str, Any] | None) -> SandboxConfig:
        """Build a SandboxConfig from a ``cli_execute`` tool config block.

        YAML and JSON loaders hand numbers over as int or float, so both are
        accepted for ``timeout`` and ``max_output_bytes``. Non-string entries
        in the list fields are dropped.
        """
        raw = raw or {}
        data: dict[str, Any] = {
            "allowed_binaries": _string_list(raw.get("allowed_binaries")),
            "env_passthrough": _string_list(raw.get("env_passthrough")),
        }
        if "timeout" in raw:
            data["timeout_seconds"] = raw["timeout"]
        if "max_output_bytes" in raw:
            data["max_output_bytes"] = raw["max_output_bytes"]
        return cls(**data)


def _positive_int(v: Any, default: int) -> int:
    # bool is an int subclass; "timeout: true" is a config mistake, not 1 second.
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return default
    n = int(v)
    return n if n > 0 else default


def _string_list(v: Any) -> list[str]:
    if not isinstance(v, list):
        return []
    return [item for item in v if isinstance(item, str)]
