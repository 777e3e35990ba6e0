"""Egress policy compilation.

Turns a declarative egress posture into build artifacts:
- ``egress_allowlist.json``: the resolved domain allowlist
- ``network-policy.yaml``: a Kubernetes NetworkPolicy for the agent's pods

Domain enforcement itself is left to an external L7 proxy; this package only
compiles and documents the allowlist.
"""

from .allowlist import generate_allowlist_json
from .artifacts import EgressArtifacts, write_egress_artifacts
from .network_policy import generate_network_policy
from .resolver import derive_egress_domains, infer_tool_domains, resolve, resolve_capabilities
from .tables import CAPABILITY_BUNDLES, PROVIDER_DOMAINS, TOOL_DOMAINS

__all__ = [
    "CAPABILITY_BUNDLES",
    "EgressArtifacts",
    "PROVIDER_DOMAINS",
    "TOOL_DOMAINS",
    "derive_egress_domains",
    "generate_allowlist_json",
    "generate_network_policy",
    "infer_tool_domains",
    "resolve",
    "resolve_capabilities",
    "write_egress_artifacts",
]
