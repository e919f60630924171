from __future__ import annotations

import argparse
from pathlib import Path


def get_repo_root(args: argparse.Namespace) -> Path:
    """Return --repo-root when given, else the current directory."""
    raw = getattr(args, "repo_root", None)
    if raw:
        return Path(raw).expanduser().resolve()
    return Path.cwd().resolve()
