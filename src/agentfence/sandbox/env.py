"""Environment isolation for sandboxed child processes.

Unlike a blocklist scrub of ``os.environ``, the child environment here is
built from scratch: a fixed base set plus the names the agent explicitly
passes through. Anything else set in the parent is invisible to the child.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

# Always inherited, even when unset in the parent (then as an empty string).
BASE_ENV_VARS: tuple[str, ...] = ("PATH", "HOME", "LANG")


def build_isolated_env(
    passthrough: Iterable[str] = (),
    *,
    source: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the environment for a sandboxed child process.

    Args:
        passthrough: Extra variable names to copy when present in ``source``.
        source: Environment to copy from. Defaults to ``os.environ``.

    Returns:
        A new dict -- never mutates ``os.environ``.
    """
    if source is None:
        source = os.environ

    env = {name: source.get(name, "") for name in BASE_ENV_VARS}

    missing: list[str] = []
    for name in passthrough:
        if name in source:
            env[name] = source[name]
        else:
            missing.append(name)

    if missing:
        logger.debug("Env passthrough: not set in parent: %s", ", ".join(missing))
    return env
