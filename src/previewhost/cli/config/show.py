"""
previewhost config show command.

SUMMARY: Show current configuration

Displays the merged configuration from bundled defaults, project overrides
(.previewhost/config/*.yaml) and PREVIEWHOST_* environment variables.
"""

from __future__ import annotations

import argparse
from typing import Any

import yaml

from previewhost.cli import OutputFormatter, add_json_flag, add_repo_root_flag, get_repo_root
from previewhost.core.config import ConfigManager
from previewhost.core.exceptions import PreviewHostError

SUMMARY = "Show current configuration"

_MISSING = object()


def _nest_key(key: str, value: Any) -> Any:
    """Nest a dot-notation key into a YAML-friendly mapping."""
    out = value
    for part in reversed([p for p in str(key).split(".") if p]):
        out = {part: out}
    return out


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "key",
        nargs="?",
        help="Specific configuration key to show (e.g., 'serve_folder.port_range')",
    )
    parser.add_argument(
        "--format",
        choices=["json", "yaml", "table"],
        default="table",
        help="Output format (default: table)",
    )
    add_json_flag(parser)
    add_repo_root_flag(parser)


def _format_value(value: Any, indent: int = 0) -> str:
    prefix = "  " * indent
    if isinstance(value, dict):
        lines = []
        for k, v in value.items():
            formatted = _format_value(v, indent + 1)
            if "\n" in formatted or isinstance(v, dict):
                lines.append(f"{prefix}{k}:")
                lines.append(formatted)
            else:
                lines.append(f"{prefix}{k}: {formatted}")
        return "\n".join(lines)
    if isinstance(value, list):
        return f"[{', '.join(str(v) for v in value)}]"
    return str(value)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manager = ConfigManager(get_repo_root(args))
        if args.key:
            value = manager.get(args.key, _MISSING)
            if value is _MISSING:
                formatter.text(f"Key not found: {args.key}")
                return 1
            data: Any = _nest_key(args.key, value)
        else:
            data = manager.get_all()
    except PreviewHostError as exc:
        formatter.error(exc)
        return 1

    output_format = "json" if args.json else args.format
    if output_format == "json":
        formatter.json_output(data)
    elif output_format == "yaml":
        formatter.text(yaml.safe_dump(data, default_flow_style=False, sort_keys=True, allow_unicode=True).rstrip())
    else:
        formatter.text(_format_value(data))
    return 0
