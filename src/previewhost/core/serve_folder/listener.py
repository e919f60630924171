"""One bound HTTP(S) preview server and its serving thread."""
from __future__ import annotations

import logging
import socket
import socketserver
import ssl
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from previewhost.core.exceptions import BindError

from .handler import NoCacheFileHandler
from .models import ServeFolderConfig, ServerParams

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.25
JOIN_TIMEOUT_SECONDS = 2.0


class PreviewHTTPServer(ThreadingHTTPServer):
    """Threaded server that knows its root and tracks open client connections.

    With an SSL context, accepted sockets are wrapped in the per-request
    thread so a stalled handshake never blocks the accept loop.
    """

    daemon_threads = True

    def __init__(
        self,
        server_address: tuple[str, int],
        handler_class: type[BaseHTTPRequestHandler],
        *,
        root: str,
        config: ServeFolderConfig,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.root = root
        self.config = config
        self.ssl_context = ssl_context
        self._connections: set[socket.socket] = set()
        self._connections_lock = threading.Lock()
        if ":" in server_address[0]:
            self.address_family = socket.AF_INET6
        super().__init__(server_address, handler_class)

    def server_bind(self) -> None:
        # HTTPServer.server_bind resolves an FQDN; previews only need the bound address.
        socketserver.TCPServer.server_bind(self)
        host, port = self.server_address[:2]
        self.server_name = str(host)
        self.server_port = int(port)

    def finish_request(self, request, client_address) -> None:
        conn = request
        if self.ssl_context is not None:
            request.settimeout(self.config.keep_alive_timeout_seconds)
            conn = self.ssl_context.wrap_socket(request, server_side=True)
        with self._connections_lock:
            self._connections.add(conn)
        try:
            super().finish_request(conn, client_address)
        finally:
            with self._connections_lock:
                self._connections.discard(conn)
            if conn is not request:
                self.shutdown_request(conn)

    def close_all_connections(self) -> int:
        """Shut down every open client connection; return how many were open."""
        with self._connections_lock:
            conns = list(self._connections)
        for conn in conns:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        return len(conns)

    def handle_error(self, request, client_address) -> None:
        # Per-request failures never stop the server.
        logger.debug("Request from %s on port %s failed", client_address, self.server_port, exc_info=True)


class PreviewListener:
    """Owns a :class:`PreviewHTTPServer`; closed exactly once."""

    def __init__(self, server: PreviewHTTPServer, params: ServerParams) -> None:
        self._server = server
        self.params = params
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def bind(
        cls,
        params: ServerParams,
        *,
        config: ServeFolderConfig,
        ssl_context: ssl.SSLContext | None = None,
        handler_class: type[BaseHTTPRequestHandler] = NoCacheFileHandler,
    ) -> PreviewListener:
        """Bind ``params.port`` on ``config.host``; raise :class:`BindError` on failure."""
        try:
            server = PreviewHTTPServer(
                (config.host, params.port),
                handler_class,
                root=params.root,
                config=config,
                ssl_context=ssl_context,
            )
        except OSError as exc:
            raise BindError(
                f"Cannot listen on {config.host}:{params.port}: {exc}",
                context={"host": config.host, "port": params.port, "use_https": params.use_https},
            ) from exc
        return cls(server, params)

    def start(self) -> None:
        with self._lock:
            if self._closed or self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._server.serve_forever,
                kwargs={"poll_interval": POLL_INTERVAL_SECONDS},
                name=f"previewhost-{self.params.port}",
                daemon=True,
            )
            self._thread.start()

    @property
    def active(self) -> bool:
        return not self._closed

    @property
    def port(self) -> int:
        return self.params.port

    def close(self) -> None:
        """Stop accepting and release the port. In-flight requests may finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
        try:
            if thread is not None:
                self._server.shutdown()
        finally:
            self._server.server_close()
        if thread is not None:
            thread.join(timeout=JOIN_TIMEOUT_SECONDS)

    def close_all_connections(self) -> int:
        return self._server.close_all_connections()

    def force_close(self) -> None:
        """Close the listener and drop every open connection."""
        try:
            self.close()
        finally:
            self.close_all_connections()


__all__ = ["PreviewHTTPServer", "PreviewListener"]
