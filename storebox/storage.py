"""Storage base class (abstract) plus the typed accessors every box gets.

Concrete boxes only provide raw `get`/`set`/`remove`/`clear_storage`/
`all_keys`; everything typed is layered on top here and holds no state.
"""

from __future__ import annotations

import typing
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional, TypeVar, Union
from urllib.parse import urlsplit

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from common.logger import get_logger
from storebox.types import BoxType, Value

T = TypeVar("T")

BoxKey = Union[str, Enum]

_MISSING: Any = object()


def raw_key(key: BoxKey) -> str:
    """Map a key (str or str-valued Enum member) to its storage string."""
    raw = key.value if isinstance(key, Enum) else key
    if not isinstance(raw, str):
        raise TypeError(f"Box keys must be str or str-valued Enum members, got {key!r}")
    if not raw:
        raise ValueError("Box keys must be non-empty strings")
    try:
        raw.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError(f"Box key {raw!r} is not valid UTF-8") from None
    return raw


def _is_kind(value: Any, type_: type) -> bool:
    kind = typing.get_origin(type_) or type_
    if kind is bool:
        return isinstance(value, bool)
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


class Storage(ABC):
    namespace: str
    box_type: BoxType

    @abstractmethod
    def set(self, key: BoxKey, value: Value) -> None:
        """Store `value` under `key` and persist."""
        ...

    @abstractmethod
    def get(self, key: BoxKey) -> Optional[Value]:
        """Cached value for `key`, or None."""
        ...

    @abstractmethod
    def remove(self, key: BoxKey) -> None:
        """Delete `key` (no-op if absent) and persist."""
        ...

    @abstractmethod
    def clear_storage(self) -> None:
        """Drop every value and delete the backend entry."""
        ...

    @abstractmethod
    def all_keys(self) -> set:
        """Every stored key that maps back to the box's key type."""
        ...

    def exists(self, key: BoxKey) -> bool:
        return self.get(key) is not None

    def set_if_absent(self, value: Value, key: BoxKey) -> None:
        if not self.exists(key):
            self.set(key, value)

    def set_encodable(self, value: Any, key: BoxKey) -> None:
        """JSON-encode any pydantic-serializable object and store the bytes.

        Encode failures are logged; the box is left untouched.
        """
        try:
            data = TypeAdapter(type(value)).dump_json(value)
        # serialization errors are ValueErrors; unknown types fail schema generation
        except (PydanticUserError, ValueError, TypeError) as exc:
            get_logger(__name__).error(
                "box: encode failed namespace=%s key=%s error=%s", self.namespace, raw_key(key), exc
            )
            return
        self.set(key, data)

    def get_decodable(self, type_: type[T], key: BoxKey) -> Optional[T]:
        data = self.get(key)
        if not isinstance(data, bytes):
            return None
        try:
            return TypeAdapter(type_).validate_json(data)
        except (ValidationError, PydanticUserError):
            return None

    def get_as(self, type_: type[T], key: BoxKey, default: Any = _MISSING) -> Optional[T]:
        """Cached value if it is a `type_`; otherwise `default` (or None).

        Kinds are matched exactly: a bool is not an int, an int is not a float.
        """
        value = self.get(key)
        if value is not None and _is_kind(value, type_):
            return value
        return None if default is _MISSING else default

    def get_or_set(self, type_: type[T], key: BoxKey, default: T) -> T:
        """Like get_as with a default, but also stores `default` when `key` is absent."""
        value = self.get(key)
        if value is None:
            self.set(key, default)
            return default
        return value if _is_kind(value, type_) else default

    def get_int(self, key: BoxKey) -> int:
        return self.get_as(int, key, 0)

    def get_double(self, key: BoxKey) -> float:
        return self.get_as(float, key, 0.0)

    def get_float(self, key: BoxKey) -> float:
        # Python floats are already doubles; kept for API parity with get_double.
        return self.get_as(float, key, 0.0)

    def get_string(self, key: BoxKey) -> Optional[str]:
        return self.get_as(str, key)

    def get_bool(self, key: BoxKey) -> bool:
        return self.get_as(bool, key, False)

    def get_bytes(self, key: BoxKey) -> Optional[bytes]:
        return self.get_as(bytes, key)

    def get_url(self, key: BoxKey) -> Optional[str]:
        """Stored string if it is an absolute URL (scheme + host, or file:)."""
        value = self.get_as(str, key)
        if value is None:
            return None
        try:
            parts = urlsplit(value)
        except ValueError:
            return None
        if parts.scheme and (parts.netloc or parts.scheme == "file"):
            return value
        return None

    def get_list(self, key: BoxKey) -> Optional[list]:
        return self.get_as(list, key)

    def get_dict(self, key: BoxKey) -> Optional[dict]:
        return self.get_as(dict, key)
