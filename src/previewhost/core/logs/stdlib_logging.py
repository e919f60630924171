from __future__ import annotations

import logging
import sys
from pathlib import Path

_CONFIGURED_TARGET: str | None = None
_PREVIEWHOST_HANDLER: logging.Handler | None = None

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, level: str = "INFO", log_path: Path | None = None) -> None:
    """Install the previewhost handler on the root logger.

    Writes to ``log_path`` when given, otherwise to stderr. Idempotent
    per-process: reconfiguring with the same target only updates the level.
    """
    global _CONFIGURED_TARGET, _PREVIEWHOST_HANDLER

    target = str(Path(log_path).resolve()) if log_path is not None else "<stderr>"
    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    if _CONFIGURED_TARGET == target and _PREVIEWHOST_HANDLER is not None:
        _PREVIEWHOST_HANDLER.setLevel(_level_from_name(level))
        return

    # Replace the previewhost-installed handler when switching targets.
    if _PREVIEWHOST_HANDLER is not None:
        root.removeHandler(_PREVIEWHOST_HANDLER)
        _PREVIEWHOST_HANDLER.close()
        _PREVIEWHOST_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(target, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    _PREVIEWHOST_HANDLER = handler
    _CONFIGURED_TARGET = target


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the previewhost handler."""
    global _CONFIGURED_TARGET, _PREVIEWHOST_HANDLER
    if _PREVIEWHOST_HANDLER is not None:
        logging.getLogger().removeHandler(_PREVIEWHOST_HANDLER)
        _PREVIEWHOST_HANDLER.close()
    _CONFIGURED_TARGET = None
    _PREVIEWHOST_HANDLER = None


__all__ = ["configure_stdlib_logging", "reset_stdlib_logging_for_tests"]
