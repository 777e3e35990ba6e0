"""Serializer for the ``egress_allowlist.json`` build artifact."""

from __future__ import annotations

import json
from typing import Any

from agentfence.errors import MarshalError
from agentfence.models import EgressConfig

ALLOWLIST_FILENAME = "egress_allowlist.json"


def allowlist_document(cfg: EgressConfig) -> dict[str, Any]:
    """Return the allowlist as a plain dict. Every array field is a list, never None."""
    return {
        "profile": _enum_value(cfg.profile),
        "mode": _enum_value(cfg.mode),
        "allowed_domains": list(cfg.allowed_domains or ()),
        "tool_domains": list(cfg.tool_domains or ()),
        "all_domains": list(cfg.all_domains or ()),
    }


def generate_allowlist_json(cfg: EgressConfig) -> bytes:
    """Render the egress allowlist as indented JSON bytes.

    Raises:
        MarshalError: If the config holds values JSON cannot encode.
    """
    try:
        return json.dumps(allowlist_document(cfg), indent=2).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise MarshalError(f"generating egress allowlist: {exc}") from exc


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)
