"""Argument validation for sandboxed commands.

Processes are spawned without a shell, so none of these patterns can inject
anything by themselves. They are rejected because a downstream consumer of
the raw output or of logged command lines could still misinterpret them.
"""

from __future__ import annotations

from agentfence.errors import InjectionSuspectedError

# (substring, human-readable name), checked in order.
DISALLOWED_PATTERNS: tuple[tuple[str, str], ...] = (
    ("$(", "command substitution '$('"),
    ("`", "backtick"),
    ("\n", "newline"),
    ("\r", "carriage return"),
)


def validate_arg(index: int, arg: str) -> None:
    """Raise InjectionSuspectedError if ``arg`` contains a disallowed pattern."""
    for pattern, name in DISALLOWED_PATTERNS:
        if pattern in arg:
            raise InjectionSuspectedError(index, name, arg)


def validate_args(args: list[str]) -> None:
    for i, arg in enumerate(args):
        validate_arg(i, arg)
