from __future__ import annotations

from typing import Any, Dict, Mapping


class PreviewHostError(Exception):
    """Base exception for previewhost."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class NoPortAvailableError(PreviewHostError, RuntimeError):
    """Raised when every port in the configured range is taken."""

    def __init__(self, min_port: int, max_port: int, *, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        ctx.setdefault("min_port", min_port)
        ctx.setdefault("max_port", max_port)
        message = f"No available port in range {min_port}-{max_port}"
        PreviewHostError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)


class BindError(PreviewHostError, OSError):
    """Raised when a listener cannot be started on its allocated port."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        PreviewHostError.__init__(self, message, context=context)
        OSError.__init__(self, message)


class CloseError(PreviewHostError, RuntimeError):
    """Raised when closing a window's listener fails.

    The registry entry is removed before this is reported.
    """

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        PreviewHostError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ConfigError(PreviewHostError, ValueError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        PreviewHostError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "PreviewHostError",
    "NoPortAvailableError",
    "BindError",
    "CloseError",
    "ConfigError",
]
