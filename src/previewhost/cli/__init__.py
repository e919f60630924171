"""
previewhost CLI package.

Commands are auto-discovered: top-level commands live in ``commands/``,
grouped ones in a domain subfolder (``config/`` -> ``previewhost config ...``).
Each command module exposes ``SUMMARY``, ``register_args(parser)`` and
``main(args) -> int``.
"""
from ._args import add_json_flag, add_repo_root_flag
from ._output import OutputFormatter, format_json, print_error
from ._utils import get_repo_root

__all__ = [
    "OutputFormatter",
    "format_json",
    "print_error",
    "add_json_flag",
    "add_repo_root_flag",
    "get_repo_root",
]
