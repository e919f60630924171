"""Per-request static file serving for preview servers."""
from __future__ import annotations

import logging
import os
from http.server import BaseHTTPRequestHandler
from urllib.parse import unquote

from previewhost import __version__

logger = logging.getLogger(__name__)

NOT_FOUND_BODY = b"Not Found"


def resolve_request_path(
    root: str,
    request_path: str,
    *,
    index_file: str = "index.html",
    confine_to_root: bool = True,
) -> str | None:
    """Map an HTTP request target to a filesystem path under ``root``.

    The query string and fragment are dropped and the path is URL-decoded.
    A path ending in ``/`` maps to ``index_file`` in that directory.
    Returns None when ``confine_to_root`` is set and the path escapes ``root``.
    """
    path = request_path.split("?", 1)[0].split("#", 1)[0]
    path = unquote(path)
    if path.endswith("/"):
        path += index_file

    joined = os.path.normpath(os.path.join(root, path.lstrip("/")))
    if confine_to_root:
        root_abs = os.path.abspath(root)
        candidate = os.path.abspath(joined)
        try:
            if os.path.commonpath([root_abs, candidate]) != root_abs:
                return None
        except ValueError:
            # Different drives on Windows.
            return None
    return joined


class NoCacheFileHandler(BaseHTTPRequestHandler):
    """Serves files from ``server.root`` with caching disabled.

    The HTTP method is not inspected: every supported verb reads the same
    file. HEAD answers with headers only.
    """

    protocol_version = "HTTP/1.1"
    server_version = f"previewhost/{__version__}"

    def setup(self) -> None:
        self.timeout = self.server.config.keep_alive_timeout_seconds
        super().setup()

    def end_headers(self) -> None:
        # Every response, errors included, passes through here.
        for name, value in self.server.config.no_cache_headers.items():
            self.send_header(name, value)
        super().end_headers()

    def do_GET(self) -> None:
        self._serve_file(include_body=True)

    def do_HEAD(self) -> None:
        self._serve_file(include_body=False)

    do_POST = do_GET
    do_PUT = do_GET
    do_PATCH = do_GET
    do_DELETE = do_GET
    do_OPTIONS = do_GET

    def _discard_request_body(self) -> None:
        if self.headers.get("Transfer-Encoding"):
            # Chunked uploads are not parsed; drop the connection after replying.
            self.close_connection = True
            return
        try:
            remaining = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            self.close_connection = True
            return
        while remaining > 0:
            chunk = self.rfile.read(min(remaining, 64 * 1024))
            if not chunk:
                break
            remaining -= len(chunk)

    def _serve_file(self, *, include_body: bool) -> None:
        config = self.server.config
        self._discard_request_body()

        file_path = resolve_request_path(
            self.server.root,
            self.path,
            index_file=config.index_file,
            confine_to_root=config.confine_to_root,
        )
        body: bytes | None = None
        if file_path is not None:
            try:
                with open(file_path, "rb") as fh:
                    body = fh.read()
            except (OSError, ValueError) as exc:
                logger.debug("Cannot read %s: %s", file_path, exc)

        if body is None:
            self._respond(404, "text/plain; charset=utf-8", NOT_FOUND_BODY, include_body=include_body)
            return
        self._respond(200, config.content_type_for(file_path), body, include_body=include_body)

    def _respond(self, status: int, content_type: str, body: bytes, *, include_body: bool) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if include_body:
            self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s:%s %s", self.address_string(), self.server.server_port, format % args)


__all__ = ["NoCacheFileHandler", "resolve_request_path", "NOT_FOUND_BODY"]
