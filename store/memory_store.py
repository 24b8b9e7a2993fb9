"""MemoryStore: process-local backend, handy for tests and ephemeral boxes."""

from __future__ import annotations

import threading

from store.base import StoreBackend
from store.errors import EntryNotFound


class MemoryStore(StoreBackend):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._blobs: dict[str, bytes] = {}

    def save(self, data: bytes, key: str) -> None:
        with self._lock:
            self._blobs[key] = bytes(data)

    def load(self, key: str) -> bytes:
        with self._lock:
            try:
                return self._blobs[key]
            except KeyError:
                raise EntryNotFound(f"No stored entry for {key!r}") from None

    def remove(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._blobs.keys())
