"""Common types for boxes."""
from __future__ import annotations

from enum import Enum
from typing import Union

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
MAX_DEPTH = 100

# Closed set of storable kinds; containers nest arbitrarily.
Value = Union[bool, int, float, str, bytes, list["Value"], dict[str, "Value"]]


class BoxType(Enum):
    """Security level of a box.

    - SECURE: encrypted store
    - INSECURE: plain store
    """

    SECURE = "secure"
    INSECURE = "insecure"


class PersistMode(Enum):
    SYNC = "sync"
    DEBOUNCED = "debounced"


def _check_text(text: str, path: str) -> None:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise TypeError(f"{path}: string is not valid UTF-8 ({exc.reason})") from None


def check_value(value: object, path: str = "value", depth: int = 0) -> None:
    """Raise TypeError unless `value` is a storable Value (recursively).

    Anything accepted here is guaranteed to encode, so a bad value can never
    block later saves of the rest of the box.
    """
    if depth > MAX_DEPTH:
        raise TypeError(f"{path}: nesting deeper than {MAX_DEPTH}")
    if isinstance(value, str):
        _check_text(value, path)
        return
    if isinstance(value, bool) or isinstance(value, (float, bytes, bytearray)):
        return
    if isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise TypeError(f"{path}: int {value} does not fit in 64 bits")
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            check_value(item, f"{path}[{i}]", depth + 1)
        return
    if isinstance(value, dict):
        for k, item in value.items():
            if not isinstance(k, str):
                raise TypeError(f"{path}: dict keys must be str, got {type(k).__name__}")
            _check_text(k, f"{path} key {k!r}")
            check_value(item, f"{path}[{k!r}]", depth + 1)
        return
    raise TypeError(f"{path}: unsupported value type {type(value).__name__}")


def normalize_value(value: Value) -> Value:
    """Return the form a value takes after a codec round-trip (tuples -> lists)."""
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: normalize_value(v) for k, v in value.items()}
    return value
