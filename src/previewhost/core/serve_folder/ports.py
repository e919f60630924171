"""Free TCP port discovery."""
from __future__ import annotations

import logging
import os
import socket
from collections.abc import Collection

from previewhost.core.exceptions import NoPortAvailableError

logger = logging.getLogger(__name__)


def is_port_available(port: int, *, host: str = "127.0.0.1") -> bool:
    """Return True when ``port`` can be bound on ``host`` right now."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    with socket.socket(family, socket.SOCK_STREAM) as s:
        if os.name == "posix":
            # Match the listener's own bind options so TIME_WAIT leftovers do not count as taken.
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind((host, port))
        except OSError:
            return False
    return True


def get_available_port(
    min_port: int,
    max_port: int,
    *,
    host: str = "127.0.0.1",
    exclude: Collection[int] = (),
) -> int:
    """Return the lowest port in ``[min_port, max_port]`` that can be bound.

    Ports listed in ``exclude`` are skipped without probing.

    Raises:
        ValueError: If the range is empty or outside 1-65535.
        NoPortAvailableError: If every port in the range is taken.
    """
    if not (1 <= min_port <= 65535 and 1 <= max_port <= 65535):
        raise ValueError(f"Port range {min_port}-{max_port} is outside 1-65535")
    if min_port > max_port:
        raise ValueError(f"Invalid port range {min_port}-{max_port}")

    skipped = set(exclude)
    for port in range(min_port, max_port + 1):
        if port in skipped:
            continue
        if is_port_available(port, host=host):
            return port
    logger.warning("No free port on %s in range %d-%d", host, min_port, max_port)
    raise NoPortAvailableError(min_port, max_port, context={"host": host})


__all__ = ["get_available_port", "is_port_available"]
