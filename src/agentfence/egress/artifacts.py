"""Build-stage wiring: resolve egress and write its artifacts to disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from agentfence.egress.allowlist import ALLOWLIST_FILENAME, generate_allowlist_json
from agentfence.egress.network_policy import NETWORK_POLICY_FILENAME, generate_network_policy
from agentfence.egress.resolver import resolve

if TYPE_CHECKING:
    from agentfence.config import AgentConfig
    from agentfence.models import EgressConfig

logger = logging.getLogger(__name__)


@dataclass
class EgressArtifacts:
    """The resolved config plus every file written, keyed by path relative to the output dir."""

    resolved: EgressConfig
    files: dict[str, Path] = field(default_factory=dict)


def write_egress_artifacts(config: AgentConfig, output_dir: Path) -> EgressArtifacts | None:
    """Resolve the agent's egress block and write the allowlist and NetworkPolicy.

    Returns None without touching disk when the agent configures neither a
    profile nor a mode. Any resolution or rendering error propagates: a
    malformed security config must fail the build, not degrade silently.
    """
    egress = config.egress
    if not egress.is_configured:
        logger.info("No egress config for %s -- skipping egress artifacts", config.agent_id)
        return None

    resolved = resolve(
        egress.profile,
        egress.mode,
        egress.allowed_domains,
        config.tool_names(),
        egress.capabilities,
    )
    artifacts = EgressArtifacts(resolved=resolved)

    outputs = {
        f"compiled/{ALLOWLIST_FILENAME}": generate_allowlist_json(resolved),
        f"k8s/{NETWORK_POLICY_FILENAME}": generate_network_policy(config.agent_id, resolved),
    }
    for rel_path, data in outputs.items():
        out_path = output_dir / rel_path
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(data)
        artifacts.files[rel_path] = out_path
        logger.info("Wrote %s", out_path)

    return artifacts
