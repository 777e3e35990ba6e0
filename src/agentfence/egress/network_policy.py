"""Kubernetes NetworkPolicy generation from a resolved egress config.

L3/L4 policy cannot express per-domain rules. In allowlist mode the manifest
opens TCP 80/443 and records the domain list in an annotation; an L7 egress
proxy is expected to read that annotation and do the actual per-domain
enforcement.
"""

from __future__ import annotations

from typing import Any

import yaml

from agentfence.errors import NetworkPolicyError
from agentfence.models import EgressConfig, EgressMode

NETWORK_POLICY_FILENAME = "network-policy.yaml"
ALLOWED_DOMAINS_ANNOTATION = "agentfence.dev/allowed-domains"

_WEB_PORTS = (443, 80)


def generate_network_policy(agent_id: str, cfg: EgressConfig | None) -> bytes:
    """Produce a NetworkPolicy manifest scoped to pods labelled ``app=<agent_id>``.

    Raises:
        NetworkPolicyError: If ``cfg`` is None or the manifest cannot be rendered.
    """
    if cfg is None:
        raise NetworkPolicyError("egress config is nil")

    metadata: dict[str, Any] = {
        "name": f"{agent_id}-network",
        "labels": {"app": agent_id},
    }
    if cfg.mode is EgressMode.ALLOWLIST and cfg.all_domains:
        metadata["annotations"] = {ALLOWED_DOMAINS_ANNOTATION: ",".join(cfg.all_domains)}

    if cfg.mode is EgressMode.DENY_ALL:
        egress: list[dict[str, Any]] = []
    else:
        egress = [
            {
                "to": [],
                "ports": [{"protocol": "TCP", "port": port} for port in _WEB_PORTS],
            }
        ]

    manifest = {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "NetworkPolicy",
        "metadata": metadata,
        "spec": {
            "podSelector": {"matchLabels": {"app": agent_id}},
            "policyTypes": ["Egress"],
            "egress": egress,
        },
    }

    try:
        text = yaml.safe_dump(manifest, default_flow_style=False, sort_keys=False, indent=2)
    except yaml.YAMLError as exc:
        raise NetworkPolicyError(f"rendering network policy: {exc}") from exc
    return text.encode("utf-8")
