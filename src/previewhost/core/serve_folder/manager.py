from __future__ import annotations

import functools
import logging
import os
import ssl
import threading
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any

from previewhost.core.exceptions import BindError, CloseError, ConfigError

from .https import HttpsConfiguration
from .listener import PreviewListener
from .models import (
    CloseFailure,
    ServeFolderConfig,
    ServerParams,
    ServerRecord,
    ShutdownReport,
    WindowId,
)
from .ports import get_available_port
from .registry import ServerRegistry

logger = logging.getLogger(__name__)

# Called as finder(min_port, max_port, exclude=ports held by this manager).
PortFinder = Callable[..., int]


class _WindowLock:
    """Per-window lock that lives only while some call holds or waits on it."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class ServeFolderManager:
    """Starts, reuses and stops one preview file server per window.

    Semantics:
    - ``serve_folder`` for a window already serving the same root resolves
      with the existing params; no port is allocated.
    - A different root for the same window closes the old server first
      (close errors are logged, never reported) and starts a new one.
    - ``stop_server`` always drops the window's record, even when closing fails.
    - ``stop_all_servers`` never raises; it reports what it could not close.

    Calls for one window are serialized. Port probing and binding are
    serialized across windows so two windows are never handed the same port.
    """

    def __init__(
        self,
        config: ServeFolderConfig | None = None,
        *,
        port_finder: PortFinder | None = None,
        https_configuration: HttpsConfiguration | None = None,
        max_workers: int = 4,
    ) -> None:
        self.config = config if config is not None else ServeFolderConfig.load()
        self._port_finder: PortFinder = port_finder or functools.partial(
            get_available_port, host=self.config.host
        )
        self._https_configuration = https_configuration
        self._registry = ServerRegistry()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="previewhost")
        self._window_locks: dict[WindowId, _WindowLock] = {}
        self._window_locks_guard = threading.Lock()
        self._allocation_lock = threading.Lock()
        self._closed = False

    @property
    def registry(self) -> ServerRegistry:
        return self._registry

    # ---- public API ---------------------------------------------------------

    def serve_folder(self, root: str | os.PathLike[str], use_https: bool, window_id: WindowId) -> Future[ServerParams]:
        """Serve ``root`` for ``window_id``; the future resolves once the port is bound.

        The future fails with ``NoPortAvailableError`` when the port range is
        exhausted and with ``BindError`` when the listener cannot start.
        """
        return self._submit(self._serve_folder, os.fspath(root), bool(use_https), window_id)

    def stop_server(self, window_id: WindowId) -> Future[None]:
        """Stop the server for ``window_id``; a window without one resolves immediately.

        The future fails with ``CloseError`` if closing raised; the record is
        removed either way.
        """
        return self._submit(self._stop_server, window_id)

    def stop_all_servers(self) -> ShutdownReport:
        """Force-close every server and clear the registry. Never raises."""
        report = ShutdownReport()
        for record in self._registry.drain():
            try:
                if record.listener.active:
                    record.listener.force_close()
                report.closed.append(record.window_id)
            except Exception as exc:
                logger.warning(
                    "Ignoring error while shutting down server for window %r on port %d: %s",
                    record.window_id,
                    record.params.port,
                    exc,
                )
                report.failures.append(CloseFailure(record.window_id, record.params.port, str(exc)))
        if report.closed or report.failures:
            logger.info(
                "Shut down %d preview server(s), %d failure(s)",
                len(report.closed),
                len(report.failures),
            )
        return report

    def get_server(self, window_id: WindowId) -> ServerParams | None:
        record = self._registry.get(window_id)
        return record.params if record is not None else None

    def active_servers(self) -> dict[WindowId, ServerParams]:
        return {wid: record.params for wid, record in self._registry.snapshot().items()}

    def close(self) -> ShutdownReport:
        """Stop every server and the worker pool. Safe to call more than once."""
        self._closed = True
        report = self.stop_all_servers()
        self._executor.shutdown(wait=True, cancel_futures=True)
        # Serve calls that were already running may have registered a server meanwhile.
        late = self.stop_all_servers()
        report.closed.extend(late.closed)
        report.failures.extend(late.failures)
        return report

    def __enter__(self) -> ServeFolderManager:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ---- internals ----------------------------------------------------------

    def _submit(self, fn: Callable[..., Any], *args: Any) -> Future[Any]:
        if self._closed:
            raise RuntimeError("ServeFolderManager is closed")
        return self._executor.submit(fn, *args)

    @contextmanager
    def _window_lock(self, window_id: WindowId) -> Iterator[None]:
        with self._window_locks_guard:
            entry = self._window_locks.get(window_id)
            if entry is None:
                entry = self._window_locks[window_id] = _WindowLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._window_locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._window_locks[window_id]

    def _ssl_context(self) -> ssl.SSLContext:
        try:
            https = self._https_configuration or HttpsConfiguration.resolve(
                self.config.cert_file, self.config.key_file
            )
            return https.ssl_context()
        except (ssl.SSLError, OSError, ConfigError) as exc:
            raise BindError(
                f"Unusable TLS configuration: {exc}",
                context={"host": self.config.host, "use_https": True},
            ) from exc

    def _close_replaced(self, record: ServerRecord) -> None:
        try:
            record.listener.close()
        except Exception as exc:
            logger.warning(
                "Error closing previous server for window %r on port %d: %s",
                record.window_id,
                record.params.port,
                exc,
            )

    def _serve_folder(self, root: str, use_https: bool, window_id: WindowId) -> ServerParams:
        with self._window_lock(window_id):
            existing = self._registry.get(window_id)
            if existing is not None and existing.params.root == root:
                logger.info("Reusing server for window %r at %s", window_id, existing.params.url)
                return existing.params

            if existing is not None:
                # Never leave the registry pointing at a closed listener.
                self._registry.pop(window_id)
                self._close_replaced(existing)

            ssl_context = self._ssl_context() if use_https else None

            with self._allocation_lock:
                port = self._port_finder(
                    self.config.min_port,
                    self.config.max_port,
                    exclude=self._registry.ports_in_use(),
                )
                params = ServerParams(port=port, root=root, use_https=use_https, host=self.config.host)
                listener = PreviewListener.bind(params, config=self.config, ssl_context=ssl_context)

            listener.start()
            self._registry.put(ServerRecord(window_id=window_id, params=params, listener=listener))
            logger.info("Serving %s for window %r at %s", root, window_id, params.url)
            return params

    def _stop_server(self, window_id: WindowId) -> None:
        with self._window_lock(window_id):
            record = self._registry.pop(window_id)
            if record is None:
                return None
            try:
                record.listener.close()
            except Exception as exc:
                raise CloseError(
                    f"Error closing server for window {window_id!r}: {exc}",
                    context={"window_id": repr(window_id), "port": record.params.port},
                ) from exc
            logger.info("Stopped server for window %r on port %d", window_id, record.params.port)
            return None


__all__ = ["ServeFolderManager", "PortFinder"]
