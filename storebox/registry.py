"""BoxRegistry: at most one live Box per (namespace, box type).

The registry is a plain object owned by application start-up and handed to
whoever needs boxes; there is no module-level singleton.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from common.config import Settings, load_settings
from common.logger import get_logger
from store.base import StoreBackend
from store.file_store import FileStore
from store.secure_store import SecureFileStore
from storebox.box import Box
from storebox.types import BoxType, PersistMode

StoreFactory = Callable[[BoxType], StoreBackend]


def default_store_factory(settings: Settings) -> StoreFactory:
    """File-backed stores rooted at `settings.data_dir`."""

    def factory(box_type: BoxType) -> StoreBackend:
        if box_type is BoxType.SECURE:
            return SecureFileStore(settings.secure_dir, password=settings.password)
        return FileStore(settings.insecure_dir)

    return factory


def _persist_mode(value) -> PersistMode:
    """Accept a PersistMode or its name in any case ("sync", "DEBOUNCED")."""
    if isinstance(value, PersistMode):
        return value
    return PersistMode(str(value).lower().strip())


class _Slot:
    """Namespace -> Box table for one box type, guarded by its own lock."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.boxes: dict[str, Box] = {}


class BoxRegistry:
    def __init__(
        self,
        store_factory: Optional[StoreFactory] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or load_settings()
        self._store_factory = store_factory or default_store_factory(self.settings)
        self._slots = {box_type: _Slot() for box_type in BoxType}

    def box(
        self,
        namespace: Optional[str],
        box_type: BoxType,
        store_factory: Optional[StoreFactory] = None,
        key_type: type = str,
    ) -> Box:
        """Return the box for (namespace, box_type), creating it on first use.

        An existing box is returned as-is even when `key_type` differs from
        the one it was created with.
        """
        name = namespace or key_type.__name__
        slot = self._slots[box_type]
        with slot.lock:
            existing = slot.boxes.get(name)
            if existing is not None:
                return existing
            factory = store_factory or self._store_factory
            created = Box(
                factory(box_type),
                namespace=name,
                box_type=box_type,
                key_type=key_type,
                persist_mode=_persist_mode(self.settings.persist_mode),
                debounce_delay=self.settings.debounce_delay,
            )
            slot.boxes[name] = created
        get_logger(__name__).debug("registry: created box namespace=%s type=%s", name, box_type.value)
        return created

    def load(self, key_type: type, box_type: BoxType, namespace: Optional[str] = None) -> Box:
        """Box for `key_type`; the namespace defaults to the key type's name."""
        return self.box(namespace, box_type, key_type=key_type)

    def boxes(self, box_type: BoxType) -> list[Box]:
        slot = self._slots[box_type]
        with slot.lock:
            return list(slot.boxes.values())

    def flush_all(self) -> None:
        """Flush pending writes of every registered box."""
        for box_type in BoxType:
            for box in self.boxes(box_type):
                box.flush()
