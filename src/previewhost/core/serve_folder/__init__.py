"""Per-window local file servers for previewing built web content.

A :class:`ServeFolderManager` owns every running preview server:
- one server per window identity, reused while the root is unchanged
- ports taken from a fixed local range, never shared between windows
- caching disabled on every response so rebuilt files show up immediately
"""

from .handler import NoCacheFileHandler, resolve_request_path
from .https import HttpsConfiguration
from .listener import PreviewHTTPServer, PreviewListener
from .manager import ServeFolderManager
from .models import (
    CloseFailure,
    ServeFolderConfig,
    ServerParams,
    ServerRecord,
    ShutdownReport,
)
from .ports import get_available_port, is_port_available
from .registry import ServerRegistry

__all__ = [
    "CloseFailure",
    "HttpsConfiguration",
    "NoCacheFileHandler",
    "PreviewHTTPServer",
    "PreviewListener",
    "ServeFolderConfig",
    "ServeFolderManager",
    "ServerParams",
    "ServerRecord",
    "ServerRegistry",
    "ShutdownReport",
    "get_available_port",
    "is_port_available",
    "resolve_request_path",
]
