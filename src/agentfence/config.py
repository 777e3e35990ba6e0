"""Configuration loading for agentfence.

Reads an agent's ``agent.yaml``: identity, model provider, channels, tool
references (with free-form per-tool config blocks) and the egress block.
Pydantic models validate the schema; tool config blocks are parsed lazily by
the tool that owns them (see ``agentfence.sandbox.config``).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from agentfence.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "agent.yaml"


# ── Config Models ────────────────────────────────────────────────────────────


class ModelRef(BaseModel):
    provider: str = ""
    name: str = ""
    version: str = ""


class ToolRef(BaseModel):
    """A tool declared by the agent. ``config`` is tool-specific and untyped here."""

    name: str
    type: str = ""
    config: dict[str, Any] | None = None


class EgressRef(BaseModel):
    """Declarative egress posture, resolved into an EgressConfig at build time."""

    profile: str = ""  # strict, standard, permissive
    mode: str = ""  # deny-all, allowlist, dev-open
    allowed_domains: list[str] = Field(default_factory=list)
    capabilities: list[str] = Field(default_factory=list)  # e.g. "slack", "telegram"

    @property
    def is_configured(self) -> bool:
        return bool(self.profile or self.mode)


class AgentConfig(BaseModel):
    """Top-level agent configuration (matches agent.yaml)."""

    agent_id: str
    version: str = "0.1.0"
    model: ModelRef = Field(default_factory=ModelRef)
    channels: list[str] = Field(default_factory=list)
    tools: list[ToolRef] = Field(default_factory=list)
    egress: EgressRef = Field(default_factory=EgressRef)

    @field_validator("agent_id")
    @classmethod
    def _validate_agent_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("agent_id is required")
        return v

    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]

    def tool_config(self, name: str) -> dict[str, Any] | None:
        """Return the raw config block of the first tool named ``name``, if any."""
        for tool in self.tools:
            if tool.name == name:
                return tool.config
        return None

    def has_tool(self, name: str) -> bool:
        return any(t.name == name for t in self.tools)


# ── Config Loader ────────────────────────────────────────────────────────────


def parse_config(raw: dict[str, Any]) -> AgentConfig:
    """Validate a raw config mapping into an AgentConfig.

    Raises:
        ConfigError: If validation fails.
    """
    try:
        return AgentConfig(**raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        raise ConfigError(f"agent config: {field}: {first.get('msg')}", field=field) from exc


def load_config(path: Path) -> AgentConfig:
    """Load an agent configuration from a YAML file.

    Args:
        path: Path to agent.yaml, or to a directory containing one.

    Returns:
        Validated AgentConfig with environment overrides applied.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigError: If the YAML is malformed or validation fails.
    """
    config_path = path / DEFAULT_CONFIG_FILENAME if path.is_dir() else path
    if not config_path.exists():
        raise FileNotFoundError(f"agent config not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"parsing agent config {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"agent config {config_path} must be a mapping")

    config = parse_config(raw)

    # Environment variable overrides for deployment
    profile = os.environ.get("AGENTFENCE_EGRESS_PROFILE")
    if profile:
        config.egress.profile = profile
    mode = os.environ.get("AGENTFENCE_EGRESS_MODE")
    if mode:
        config.egress.mode = mode

    logger.info("Loaded agent config: agent_id=%s tools=%d", config.agent_id, len(config.tools))
    return config
