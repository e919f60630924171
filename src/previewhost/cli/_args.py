"""Common CLI argument registration helpers."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root, the directory whose .previewhost/config is loaded."""
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Project root holding .previewhost/config (default: current directory)",
    )
