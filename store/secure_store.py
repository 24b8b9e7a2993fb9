"""SecureFileStore: per-namespace files holding password-encrypted JSON payloads."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidTag

from common.logger import get_logger
from store.errors import BackendUnavailable
from store.file_store import FileStore
from store.store_crypto import decrypt, encrypt, is_encrypted_payload


class SecureFileStore(FileStore):
    """Encrypted file-backed store.

    Every blob is sealed with scrypt + AES-256-GCM; the namespace is bound
    as associated data, so renaming a file onto another namespace fails to
    decrypt instead of silently loading foreign data.
    """

    def __init__(self, directory: Union[str, Path], password: Optional[str] = None):
        super().__init__(directory)
        self.password = password or os.environ.get("STOREBOX_PASSWORD")

    def _require_password(self) -> str:
        if not self.password:
            raise BackendUnavailable(
                "Secure store needs a password (STOREBOX_PASSWORD or password=)"
            )
        return self.password

    def save(self, data: bytes, key: str) -> None:
        password = self._require_password()
        payload = encrypt(data, password, associated_data=key.encode("utf-8"))
        self._write_bytes(key, json.dumps(payload, indent=2).encode("utf-8"))
        get_logger(__name__).debug("secure store: write ok path=%s", self.path_for(key))

    def load(self, key: str) -> bytes:
        raw = self._read_bytes(key)
        password = self._require_password()
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BackendUnavailable(f"Secure entry {key!r} is not a JSON payload") from exc
        if not is_encrypted_payload(payload):
            raise BackendUnavailable(f"Secure entry {key!r} is not an encrypted payload")
        try:
            plain = decrypt(payload, password, associated_data=key.encode("utf-8"))
        except (InvalidTag, ValueError) as exc:
            raise BackendUnavailable(f"Cannot decrypt secure entry {key!r}") from exc
        get_logger(__name__).debug("secure store: read ok path=%s", self.path_for(key))
        return plain
