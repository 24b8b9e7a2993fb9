from store.base import StoreBackend
from store.errors import (
    BackendUnavailable,
    DeserializationFailure,
    EncodeFailure,
    EntryNotFound,
    StoreBoxError,
)
from store.file_store import FileStore
from store.memory_store import MemoryStore
from store.secure_store import SecureFileStore
from store.store_crypto import decrypt, encrypt, is_encrypted_payload

__all__ = [
    "StoreBackend",
    "FileStore",
    "SecureFileStore",
    "MemoryStore",
    "StoreBoxError",
    "BackendUnavailable",
    "EntryNotFound",
    "DeserializationFailure",
    "EncodeFailure",
    "encrypt",
    "decrypt",
    "is_encrypted_payload",
]
