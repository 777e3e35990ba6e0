"""agentfence CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml

from agentfence.config import DEFAULT_CONFIG_FILENAME, load_config
from agentfence.egress.resolver import derive_egress_domains
from agentfence.errors import AgentFenceError
from agentfence.models import EgressMode, EgressProfile
from agentfence.tools.cli_execute import CLI_EXECUTE_TOOL_NAME, build_registry

logger = logging.getLogger("agentfence")

_CONFIG_HEADER = """\
# agent.yaml -- agentfence agent configuration
#
# egress.mode: deny-all | allowlist | dev-open
# egress.profile: strict | standard | permissive
"""


# ── Commands ─────────────────────────────────────────────────────────────────


def _init_project(args: argparse.Namespace) -> None:
    target = args.dir / DEFAULT_CONFIG_FILENAME
    if target.exists():
        print(f"Error: {target} already exists", file=sys.stderr)
        sys.exit(1)

    domains = derive_egress_domains(args.provider, args.channel, args.tool)
    data = {
        "agent_id": args.agent_id,
        "version": "0.1.0",
        "model": {"provider": args.provider, "name": ""},
        "channels": list(args.channel),
        "tools": [{"name": t} for t in args.tool],
        "egress": {
            "profile": EgressProfile.STRICT.value,
            "mode": EgressMode.ALLOWLIST.value,
            "allowed_domains": domains,
            "capabilities": list(args.channel),
        },
    }
    args.dir.mkdir(parents=True, exist_ok=True)
    target.write_text(_CONFIG_HEADER + "\n" + yaml.safe_dump(data, sort_keys=False))
    print(f"Created {target}")
    if domains:
        print(f"Allowed domains: {', '.join(domains)}")


def _build(args: argparse.Namespace) -> None:
    from agentfence.egress.artifacts import write_egress_artifacts

    config = load_config(args.config)
    artifacts = write_egress_artifacts(config, args.output_dir)
    if artifacts is None:
        print("No egress config -- nothing to build.")
        return
    resolved = artifacts.resolved
    print(f"Egress: profile={resolved.profile.value} mode={resolved.mode.value}")
    for rel_path, path in artifacts.files.items():
        print(f"  {rel_path} -> {path}")


def _exec(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    registry = build_registry(config)
    if CLI_EXECUTE_TOOL_NAME not in registry:
        print(f"Error: {CLI_EXECUTE_TOOL_NAME} is not configured for this agent", file=sys.stderr)
        sys.exit(1)

    request: dict = {"binary": args.binary, "args": args.args}
    if args.stdin is not None:
        request["stdin"] = args.stdin
    output = asyncio.run(registry.execute(CLI_EXECUTE_TOOL_NAME, json.dumps(request)))
    print(output)


def _tools(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    registry = build_registry(config)
    print(json.dumps(registry.tool_definitions(), indent=2))


# ── Parser ───────────────────────────────────────────────────────────────────


def _add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=Path.cwd() / DEFAULT_CONFIG_FILENAME,
        help=f"Path to {DEFAULT_CONFIG_FILENAME} (default: ./{DEFAULT_CONFIG_FILENAME})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentfence",
        description="agentfence -- egress policy compiler and command sandbox for AI agents",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # agentfence init
    init_parser = subparsers.add_parser("init", help="Write a starter agent.yaml")
    init_parser.add_argument(
        "--dir",
        type=Path,
        default=Path.cwd(),
        help="Directory to create agent.yaml in (default: current directory)",
    )
    init_parser.add_argument("--agent-id", required=True, help="Agent identifier")
    init_parser.add_argument(
        "--provider",
        default="anthropic",
        help="Model provider: openai, anthropic, gemini, ollama (default: anthropic)",
    )
    init_parser.add_argument(
        "--channel", action="append", default=[], help="Channel capability (repeatable)"
    )
    init_parser.add_argument("--tool", action="append", default=[], help="Tool name (repeatable)")

    # agentfence build
    build_parser_ = subparsers.add_parser("build", help="Compile egress artifacts")
    _add_config_arg(build_parser_)
    build_parser_.add_argument(
        "--output-dir",
        type=Path,
        default=Path.cwd() / ".agentfence",
        help="Artifact output directory (default: ./.agentfence)",
    )

    # agentfence exec
    exec_parser = subparsers.add_parser("exec", help="Run one command through cli_execute")
    _add_config_arg(exec_parser)
    exec_parser.add_argument("--stdin", default=None, help="Text to pipe to the process")
    exec_parser.add_argument("binary", help="Allowed binary to run")
    exec_parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the binary")

    # agentfence tools
    tools_parser = subparsers.add_parser("tools", help="Print tool definitions as JSON")
    _add_config_arg(tools_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    commands = {
        "init": _init_project,
        "build": _build,
        "exec": _exec,
        "tools": _tools,
    }
    try:
        commands[args.command](args)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except AgentFenceError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
