"""Egress resolution: declarative posture -> concrete domain allowlist.

Pure functions only. Nothing here mutates module state, so builds may call
``resolve()`` concurrently without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from agentfence.egress.tables import CAPABILITY_BUNDLES, PROVIDER_DOMAINS, TOOL_DOMAINS
from agentfence.errors import ConfigError
from agentfence.models import DEFAULT_MODE, DEFAULT_PROFILE, EgressConfig, EgressMode, EgressProfile

logger = logging.getLogger(__name__)


def resolve(
    profile: str | EgressProfile | None,
    mode: str | EgressMode | None,
    explicit_domains: Iterable[str] | None = None,
    tool_names: Iterable[str] | None = None,
    capabilities: Iterable[str] | None = None,
) -> EgressConfig:
    """Build an EgressConfig from profile, mode, explicit domains, tools and capabilities.

    An empty profile defaults to ``strict`` and an empty mode to ``deny-all``.
    In ``deny-all`` mode every other input is ignored: the strictest mode
    always wins, even when domains are supplied alongside it.

    Raises:
        ConfigError: If profile or mode is outside its enum.
    """
    p = _parse_profile(profile)
    m = _parse_mode(mode)

    if m is not EgressMode.ALLOWLIST:
        logger.info("Egress resolved: profile=%s mode=%s (no domain list)", p.value, m.value)
        return EgressConfig(profile=p, mode=m)

    allowed = list(explicit_domains or ())
    tool_domains = infer_tool_domains(tool_names or ())
    cap_domains = resolve_capabilities(capabilities or ())
    all_domains = _dedup_sorted([*allowed, *tool_domains, *cap_domains])

    logger.info(
        "Egress resolved: profile=%s mode=%s domains=%d", p.value, m.value, len(all_domains)
    )
    return EgressConfig(
        profile=p,
        mode=m,
        allowed_domains=tuple(allowed),
        tool_domains=tuple(tool_domains),
        all_domains=tuple(all_domains),
    )


def resolve_capabilities(capabilities: Iterable[str]) -> list[str]:
    """Return the domains for the given capability bundles, deduplicated in input order."""
    return _lookup(CAPABILITY_BUNDLES, capabilities)


def infer_tool_domains(tool_names: Iterable[str]) -> list[str]:
    """Return the known domains for the given tool names, deduplicated in input order."""
    return _lookup(TOOL_DOMAINS, tool_names)


def derive_egress_domains(
    provider: str,
    channels: Iterable[str] = (),
    tool_names: Iterable[str] = (),
    extra: Iterable[str] = (),
) -> list[str]:
    """Compute every domain an agent needs from its provider, channels, tools and extras.

    Used when scaffolding a new agent config so the allowlist starts out
    complete rather than empty.
    """
    domains: list[str] = []
    provider_domain = PROVIDER_DOMAINS.get(provider)
    if provider_domain:
        domains.append(provider_domain)
    domains.extend(resolve_capabilities(channels))
    domains.extend(infer_tool_domains(tool_names))
    domains.extend(extra)
    return _dedup_sorted(domains)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _parse_profile(value: str | EgressProfile | None) -> EgressProfile:
    if isinstance(value, EgressProfile):
        return value
    if not value:
        return DEFAULT_PROFILE
    try:
        return EgressProfile(value)
    except ValueError:
        allowed = tuple(p.value for p in EgressProfile)
        raise ConfigError(
            f"invalid egress profile {value!r}: must be {_one_of(allowed)}",
            field="profile",
            value=str(value),
            allowed=allowed,
        ) from None


def _parse_mode(value: str | EgressMode | None) -> EgressMode:
    if isinstance(value, EgressMode):
        return value
    if not value:
        return DEFAULT_MODE
    try:
        return EgressMode(value)
    except ValueError:
        allowed = tuple(m.value for m in EgressMode)
        raise ConfigError(
            f"invalid egress mode {value!r}: must be {_one_of(allowed)}",
            field="mode",
            value=str(value),
            allowed=allowed,
        ) from None


def _one_of(values: tuple[str, ...]) -> str:
    return ", ".join(values[:-1]) + f", or {values[-1]}"


def _lookup(table: Mapping[str, tuple[str, ...]], names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    domains: list[str] = []
    for name in names:
        for domain in table.get(name, ()):
            if domain not in seen:
                seen.add(domain)
                domains.append(domain)
    return domains


def _dedup_sorted(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return sorted(result)
