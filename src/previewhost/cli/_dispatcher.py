"""
Auto-discovery CLI dispatcher for previewhost.

Adding a command = adding a .py file under ``commands/`` (top level) or a
domain subfolder such as ``config/``.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _load_command(module_name: str, default_summary: str) -> dict[str, Any] | None:
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        print(f"Warning: Could not import {module_name}: {e}", file=sys.stderr)
        return None
    return {
        "module": module,
        "summary": getattr(module, "SUMMARY", default_summary),
        "register_args": getattr(module, "register_args", None),
        "main": getattr(module, "main", None),
    }


@lru_cache(maxsize=1)
def discover_root_commands() -> dict[str, dict[str, Any]]:
    """Discover top-level commands under cli/commands (no domain prefix)."""
    commands_dir = Path(__file__).parent / "commands"
    commands: dict[str, dict[str, Any]] = {}
    for item in sorted(commands_dir.glob("*.py")):
        if item.name.startswith("_"):
            continue
        info = _load_command(f"previewhost.cli.commands.{item.stem}", item.stem)
        if info is not None:
            commands[item.stem] = info
    return commands


@lru_cache(maxsize=1)
def discover_domains() -> dict[str, Path]:
    """Discover CLI domain subfolders (every directory with command modules)."""
    cli_dir = Path(__file__).parent
    domains: dict[str, Path] = {}
    for item in sorted(cli_dir.iterdir()):
        if item.name == "commands" or not item.is_dir() or item.name.startswith("_"):
            continue
        if any(f.suffix == ".py" and not f.name.startswith("_") for f in item.iterdir()):
            domains[item.name] = item
    return domains


@lru_cache(maxsize=16)
def discover_commands(domain: str) -> dict[str, dict[str, Any]]:
    domain_dir = Path(__file__).parent / domain
    commands: dict[str, dict[str, Any]] = {}
    for item in sorted(domain_dir.glob("*.py")):
        if item.name.startswith("_"):
            continue
        info = _load_command(f"previewhost.cli.{domain}.{item.stem}", f"{domain} {item.stem}")
        if info is not None:
            commands[item.stem] = info
    return commands


def _add_command_parser(subparsers: Any, name: str, info: dict[str, Any]) -> None:
    primary_name = name.replace("_", "-")
    aliases = [name] if primary_name != name else []
    cmd_parser = subparsers.add_parser(primary_name, aliases=aliases, help=info["summary"])
    if info["register_args"]:
        info["register_args"](cmd_parser)
    if info["main"]:
        cmd_parser.set_defaults(_func=info["main"])


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with auto-discovered domains and commands."""
    parser = argparse.ArgumentParser(
        prog="previewhost",
        description="previewhost - per-window local file servers for web previews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: logging.level from configuration)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to this file instead of stderr",
    )

    subparsers = parser.add_subparsers(
        dest="domain",
        title="commands",
        metavar="<command>",
    )

    for cmd_name, cmd_info in sorted(discover_root_commands().items()):
        _add_command_parser(subparsers, cmd_name, cmd_info)

    for domain_name in sorted(discover_domains().keys()):
        domain_commands = discover_commands(domain_name)
        if not domain_commands:
            continue
        domain_parser = subparsers.add_parser(domain_name, help=f"{domain_name.title()} commands")
        cmd_subparsers = domain_parser.add_subparsers(
            dest="command",
            title="commands",
            metavar="<command>",
        )
        for cmd_name, cmd_info in sorted(domain_commands.items()):
            _add_command_parser(cmd_subparsers, cmd_name, cmd_info)

    return parser


def _get_version() -> str:
    try:
        from previewhost import __version__

        return __version__
    except ImportError:
        return "unknown"


def _configure_logging(args: argparse.Namespace) -> None:
    from previewhost.core.config import LoggingConfig
    from previewhost.core.exceptions import PreviewHostError
    from previewhost.core.logs import configure_stdlib_logging

    level = args.log_level
    log_file = Path(args.log_file) if args.log_file else None
    if level is None or log_file is None:
        repo_root = getattr(args, "repo_root", None)
        try:
            cfg = LoggingConfig(repo_root=Path(repo_root) if repo_root else None)
            level = level or cfg.level
            log_file = log_file or cfg.file
        except PreviewHostError as exc:
            # The command itself reports configuration errors.
            logger.debug("Logging config unavailable: %s", exc)
    configure_stdlib_logging(level=level or "INFO", log_path=log_file)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the previewhost CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.domain:
        parser.print_help()
        return 0

    func = getattr(args, "_func", None)
    if func is None:
        domain_parser = parser._subparsers._group_actions[0].choices.get(args.domain)  # type: ignore[union-attr]
        if domain_parser:
            domain_parser.print_help()
        return 0

    _configure_logging(args)
    try:
        return int(func(args) or 0)
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
