"""Window -> running server bookkeeping."""
from __future__ import annotations

import threading

from .models import ServerRecord, WindowId


class ServerRegistry:
    """Thread-safe mapping of window identity to its active server record.

    Each mutation is atomic with respect to other registry calls. Callers
    that need read-then-write sequences hold their own per-window lock.
    """

    def __init__(self) -> None:
        self._records: dict[WindowId, ServerRecord] = {}
        self._lock = threading.Lock()

    def get(self, window_id: WindowId) -> ServerRecord | None:
        with self._lock:
            return self._records.get(window_id)

    def put(self, record: ServerRecord) -> ServerRecord | None:
        """Insert or replace the record for ``record.window_id``; return the previous one."""
        with self._lock:
            previous = self._records.get(record.window_id)
            self._records[record.window_id] = record
            return previous

    def pop(self, window_id: WindowId) -> ServerRecord | None:
        with self._lock:
            return self._records.pop(window_id, None)

    def drain(self) -> list[ServerRecord]:
        """Remove and return every record."""
        with self._lock:
            records = list(self._records.values())
            self._records.clear()
            return records

    def ports_in_use(self) -> set[int]:
        with self._lock:
            return {r.params.port for r in self._records.values()}

    def snapshot(self) -> dict[WindowId, ServerRecord]:
        with self._lock:
            return dict(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, window_id: object) -> bool:
        with self._lock:
            return window_id in self._records


__all__ = ["ServerRegistry"]
