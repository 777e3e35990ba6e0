"""Core egress data models."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field


# ── Profile & Mode ───────────────────────────────────────────────────────────


class EgressProfile(str, enum.Enum):
    """Named security posture. ``strict`` is the safe default."""

    STRICT = "strict"
    STANDARD = "standard"
    PERMISSIVE = "permissive"


class EgressMode(str, enum.Enum):
    """Concrete enforcement mode. ``deny-all`` is the safe default."""

    DENY_ALL = "deny-all"
    ALLOWLIST = "allowlist"
    DEV_OPEN = "dev-open"


DEFAULT_PROFILE = EgressProfile.STRICT
DEFAULT_MODE = EgressMode.DENY_ALL


# ── Resolved Config ──────────────────────────────────────────────────────────


class EgressConfig(BaseModel):
    """Resolved egress configuration, produced once per build by the resolver.

    Domain lists are only populated in ``allowlist`` mode. In ``deny-all``
    they are empty because nothing is allowed; in ``dev-open`` they are empty
    because nothing is restricted.
    """

    model_config = ConfigDict(frozen=True)

    profile: EgressProfile = DEFAULT_PROFILE
    mode: EgressMode = DEFAULT_MODE
    allowed_domains: tuple[str, ...] = Field(
        default=(), description="Explicit user domains, input order preserved"
    )
    tool_domains: tuple[str, ...] = Field(default=(), description="Domains inferred from tools")
    all_domains: tuple[str, ...] = Field(
        default=(), description="Deduplicated, sorted union of every domain source"
    )
