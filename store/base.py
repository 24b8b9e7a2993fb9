"""Store backend base class (abstract).

Boxes depend on this type, so you can inject alternative backends
(memory/db/OS keychain/etc.) without changing cache logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StoreBackend(ABC):
    """Durable byte-blob storage keyed by a namespace string.

    Implementations raise `BackendUnavailable` on storage failures and
    `EntryNotFound` from `load()` when nothing is stored under the key.
    """

    @abstractmethod
    def save(self, data: bytes, key: str) -> None:
        """Store `data` under `key`, replacing any previous blob."""
        ...

    @abstractmethod
    def load(self, key: str) -> bytes:
        """Return the blob stored under `key`."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the blob stored under `key` (no error if absent)."""
        ...

    def describe(self, key: str) -> str:
        """Human-readable location of `key`, for log lines."""
        return f"{type(self).__name__}:{key}"
