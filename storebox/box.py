"""Box: a namespace-scoped, typed key-value cache persisted through a store backend.

    class AppKeys(str, Enum):
        API_TOKEN = "apiToken"
        LAUNCH_COUNT = "launchCount"

    box = registry.load(AppKeys, BoxType.SECURE)
    box.set(AppKeys.API_TOKEN, "secret")
    box.set(AppKeys.LAUNCH_COUNT, box.get_int(AppKeys.LAUNCH_COUNT) + 1)
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Iterator, Optional

from common.logger import get_logger
from store.base import StoreBackend
from store.errors import BackendUnavailable, DeserializationFailure, EncodeFailure, EntryNotFound
from storebox.storage import BoxKey, Storage, raw_key
from storebox.types import BoxType, PersistMode, Value, check_value, normalize_value
from storebox.value_codec import CacheCodec, ValueCodec

DEFAULT_DEBOUNCE_DELAY = 0.1


class Box(Storage):
    """In-memory cache for one namespace, kept in sync with a store backend.

    Mutations are serialized by a per-box lock. In SYNC mode the backend
    write happens before the mutating call returns; in DEBOUNCED mode a
    timer coalesces a burst of mutations into one write. Reads never take
    the lock.
    """

    def __init__(
        self,
        store: StoreBackend,
        namespace: Optional[str] = None,
        box_type: BoxType = BoxType.INSECURE,
        key_type: type = str,
        codec: Optional[CacheCodec] = None,
        persist_mode: PersistMode = PersistMode.SYNC,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
    ):
        self.key_type = key_type
        self.namespace = namespace or key_type.__name__
        self.box_type = box_type
        self.persist_mode = persist_mode
        self.debounce_delay = debounce_delay
        self._store = store
        self._codec: CacheCodec = codec or ValueCodec()
        self._lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._cache: dict[str, Value] = {}
        self._load()

    def __repr__(self) -> str:
        return f"Box(namespace={self.namespace!r}, box_type={self.box_type.name}, keys={len(self._cache)})"

    @property
    def has_pending_write(self) -> bool:
        return self._timer is not None

    # ---------- persistence ----------

    def _location(self) -> str:
        return self._store.describe(self.namespace)

    def _load(self) -> None:
        log = get_logger(__name__)
        try:
            data = self._store.load(self.namespace)
            cache = self._codec.decode(data)
        except EntryNotFound:
            self._cache = {}
            log.debug("box: no stored entry, starting empty namespace=%s", self.namespace)
            return
        except (BackendUnavailable, DeserializationFailure) as exc:
            self._cache = {}
            log.warning(
                "box: load failed, starting empty namespace=%s error=%s location=%s",
                self.namespace,
                exc,
                self._location(),
            )
            return
        self._cache = cache
        log.info(
            "box: load ok namespace=%s type=%s keys=%d location=%s",
            self.namespace,
            self.box_type.value,
            len(cache),
            self._location(),
        )

    def _save_locked(self) -> None:
        """Encode and write the current cache. Caller holds the lock."""
        log = get_logger(__name__)
        try:
            data = self._codec.encode(self._cache)
            self._store.save(data, self.namespace)
        except (EncodeFailure, BackendUnavailable) as exc:
            # Cache stays authoritative; the durable copy lags until the next save.
            log.error(
                "box: save failed namespace=%s error=%s location=%s", self.namespace, exc, self._location()
            )
            return
        log.debug("box: save ok namespace=%s keys=%d bytes=%d", self.namespace, len(self._cache), len(data))

    def _cancel_pending_locked(self) -> bool:
        self._generation += 1
        timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        return True

    def _persist_locked(self) -> None:
        if self.persist_mode is PersistMode.SYNC:
            self._save_locked()
            return
        self._cancel_pending_locked()
        generation = self._generation
        timer = threading.Timer(self.debounce_delay, self._fire_debounced, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _fire_debounced(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._save_locked()
            self._timer = None

    def flush(self) -> None:
        """Write a pending debounced save now (app exit/backgrounding hook)."""
        with self._lock:
            if self._cancel_pending_locked():
                self._save_locked()

    def reload(self) -> None:
        """Drop the cache and load it again from the backend."""
        with self._lock:
            self._cancel_pending_locked()
            self._load()

    # ---------- raw access ----------

    def set(self, key: BoxKey, value: Value) -> None:
        raw = raw_key(key)
        check_value(value, raw)
        with self._lock:
            self._cache[raw] = normalize_value(value)
            self._persist_locked()

    def get(self, key: BoxKey) -> Optional[Value]:
        return self._cache.get(raw_key(key))

    def remove(self, key: BoxKey) -> None:
        raw = raw_key(key)
        with self._lock:
            if raw not in self._cache:
                return
            del self._cache[raw]
            self._persist_locked()

    def clear_storage(self) -> None:
        log = get_logger(__name__)
        with self._lock:
            self._cancel_pending_locked()
            self._cache.clear()
            try:
                self._store.remove(self.namespace)
            except BackendUnavailable as exc:
                log.error(
                    "box: clear failed namespace=%s error=%s location=%s",
                    self.namespace,
                    exc,
                    self._location(),
                )
                return
        log.info("box: cleared namespace=%s", self.namespace)

    def _typed_key(self, raw: str) -> Any:
        if self.key_type is str:
            return raw
        try:
            return self.key_type(raw)
        except ValueError:
            return None

    def all_keys(self) -> set:
        keys = set()
        for raw in list(self._cache):
            typed = self._typed_key(raw)
            if typed is not None:
                keys.add(typed)
        return keys

    # ---------- mapping sugar ----------

    def __getitem__(self, key: BoxKey) -> Value:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __setitem__(self, key: BoxKey, value: Optional[Value]) -> None:
        if value is None:
            self.remove(key)
        else:
            self.set(key, value)

    def __delitem__(self, key: BoxKey) -> None:
        self.remove(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, Enum)):
            return False
        return self.exists(key)

    def __len__(self) -> int:
        return len(self._cache)

    def __iter__(self) -> Iterator:
        return iter(self.all_keys())
