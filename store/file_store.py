"""FileStore: one plain file per namespace under a fixed directory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union
from urllib.parse import quote

from common.logger import get_logger
from store.base import StoreBackend
from store.errors import BackendUnavailable, EntryNotFound

FILE_SUFFIX = ".box"


class FileStore(StoreBackend):
    """Insecure file-backed store (raw bytes, no encryption)."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        # Namespaces are arbitrary strings; quote so they map to one flat file name.
        return self.directory / (quote(key, safe="") + FILE_SUFFIX)

    def describe(self, key: str) -> str:
        return str(self.path_for(key))

    def _read_bytes(self, key: str) -> bytes:
        path = self.path_for(key)
        if not path.is_file():
            raise EntryNotFound(f"No stored entry for {key!r} at {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise BackendUnavailable(f"Cannot read {path}: {exc}") from exc

    def _write_bytes(self, key: str, data: bytes) -> None:
        """Atomic via tmp+rename."""
        path = self.path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise BackendUnavailable(f"Cannot write {path}: {exc}") from exc

    def save(self, data: bytes, key: str) -> None:
        self._write_bytes(key, data)
        get_logger(__name__).debug("file store: write ok path=%s bytes=%d", self.path_for(key), len(data))

    def load(self, key: str) -> bytes:
        data = self._read_bytes(key)
        get_logger(__name__).debug("file store: read ok path=%s bytes=%d", self.path_for(key), len(data))
        return data

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise BackendUnavailable(f"Cannot remove {path}: {exc}") from exc
        get_logger(__name__).debug("file store: remove ok path=%s", path)
