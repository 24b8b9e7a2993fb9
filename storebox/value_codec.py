"""Minimal protobuf encoder/decoder for a box cache:

message Value {
  oneof kind {
    bool      bool_value   = 1;
    sint64    int_value    = 2;
    double    float_value  = 3;
    string    string_value = 4;
    bytes     bytes_value  = 5;
    ListValue list_value   = 6;
    MapValue  map_value    = 7;
  }
}
message ListValue { repeated Value values = 1; }
message MapValue  { repeated Entry entries = 1; }
message Entry     { string key = 1; Value value = 2; }

The cache document itself is a MapValue.
"""
from __future__ import annotations

import struct
from typing import Dict, Protocol

from store.errors import DeserializationFailure, EncodeFailure
from storebox.types import INT64_MAX, INT64_MIN, MAX_DEPTH, Value

WIRE_TYPE_VARINT = 0
WIRE_TYPE_64BIT = 1
WIRE_TYPE_LENGTH_DELIMITED = 2
WIRE_TYPE_32BIT = 5

FIELD_BOOL = 1
FIELD_INT = 2
FIELD_FLOAT = 3
FIELD_STRING = 4
FIELD_BYTES = 5
FIELD_LIST = 6
FIELD_MAP = 7

MAX_VARINT_BYTES = 10

_DOUBLE = struct.Struct("<d")


class CacheCodec(Protocol):
    """Pluggable serializer between a box cache and backend bytes."""

    def encode(self, cache: Dict[str, Value]) -> bytes:
        ...

    def decode(self, data: bytes) -> Dict[str, Value]:
        ...


def _encode_varint(value: int) -> bytes:
    v = value & 0xFFFFFFFFFFFFFFFF
    out = bytearray()
    while v >= 0x80:
        out.append((v & 0x7F) | 0x80)
        v >>= 7
    out.append(v)
    return bytes(out)


def _decode_varint(buf: bytes, offset: int, limit: int) -> tuple:
    """Decode a varint from buf at offset. Returns (value, next_offset)."""
    result = 0
    shift = 0
    pos = offset
    while pos < limit:
        if pos - offset >= MAX_VARINT_BYTES:
            raise DeserializationFailure("Varint too long (> 10 bytes)")
        b = buf[pos]
        pos += 1
        result |= (b & 0x7F) << shift
        if not (b & 0x80):
            return result & 0xFFFFFFFFFFFFFFFF, pos
        shift += 7
    raise DeserializationFailure("Unexpected end of buffer while decoding varint")


def _zigzag(value: int) -> int:
    return (value << 1) ^ (value >> 63)


def _unzigzag(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def _skip_field(buf: bytes, offset: int, wire_type: int, limit: int) -> int:
    """Skip a field based on wire type. Returns new offset."""
    if wire_type == WIRE_TYPE_VARINT:
        _, offset = _decode_varint(buf, offset, limit)
        return offset
    elif wire_type == WIRE_TYPE_64BIT:
        if offset + 8 > limit:
            raise DeserializationFailure("Unexpected end of buffer skipping 64-bit field")
        return offset + 8
    elif wire_type == WIRE_TYPE_LENGTH_DELIMITED:
        skip_len, offset = _decode_varint(buf, offset, limit)
        if offset + skip_len > limit:
            raise DeserializationFailure("Length-delimited field exceeds buffer")
        return offset + skip_len
    elif wire_type == WIRE_TYPE_32BIT:
        if offset + 4 > limit:
            raise DeserializationFailure("Unexpected end of buffer skipping 32-bit field")
        return offset + 4
    else:
        raise DeserializationFailure(f"Unknown wire type {wire_type}")


def _tag(field_number: int, wire_type: int) -> bytes:
    return _encode_varint((field_number << 3) | wire_type)


def _length_delimited(field_number: int, payload: bytes) -> bytes:
    return _tag(field_number, WIRE_TYPE_LENGTH_DELIMITED) + _encode_varint(len(payload)) + payload


def _utf8(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodeFailure(f"String {text!r} is not valid UTF-8") from exc


def _encode_value(value: Value, depth: int) -> bytes:
    if depth > MAX_DEPTH:
        raise EncodeFailure(f"Value nesting deeper than {MAX_DEPTH}")
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return _tag(FIELD_BOOL, WIRE_TYPE_VARINT) + _encode_varint(int(value))
    if isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise EncodeFailure(f"int {value} does not fit in 64 bits")
        return _tag(FIELD_INT, WIRE_TYPE_VARINT) + _encode_varint(_zigzag(value))
    if isinstance(value, float):
        return _tag(FIELD_FLOAT, WIRE_TYPE_64BIT) + _DOUBLE.pack(value)
    if isinstance(value, str):
        return _length_delimited(FIELD_STRING, _utf8(value))
    if isinstance(value, (bytes, bytearray)):
        return _length_delimited(FIELD_BYTES, bytes(value))
    if isinstance(value, (list, tuple)):
        items = b"".join(_length_delimited(1, _encode_value(v, depth + 1)) for v in value)
        return _length_delimited(FIELD_LIST, items)
    if isinstance(value, dict):
        return _length_delimited(FIELD_MAP, _encode_map(value, depth + 1))
    raise EncodeFailure(f"Unsupported value type {type(value).__name__}")


def _encode_map(data: Dict[str, Value], depth: int) -> bytes:
    chunks: list[bytes] = []
    for key, value in data.items():
        if not isinstance(key, str):
            raise EncodeFailure(f"Map keys must be str, got {type(key).__name__}")
        entry = _length_delimited(1, _utf8(key)) + _length_delimited(2, _encode_value(value, depth))
        chunks.append(_length_delimited(1, entry))
    return b"".join(chunks)


def _read_chunk(buf: bytes, offset: int, limit: int) -> tuple:
    """Read a length-delimited payload. Returns (start, end)."""
    size, offset = _decode_varint(buf, offset, limit)
    if offset + size > limit:
        raise DeserializationFailure(
            f"Length {size} exceeds message boundary (offset={offset}, limit={limit})"
        )
    return offset, offset + size


def _decode_utf8(buf: bytes, start: int, end: int) -> str:
    try:
        return buf[start:end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DeserializationFailure("Invalid UTF-8 in string field") from exc


def _decode_value(buf: bytes, offset: int, end: int, depth: int) -> Value:
    if depth > MAX_DEPTH:
        raise DeserializationFailure(f"Value nesting deeper than {MAX_DEPTH}")
    result: Value = None
    found = False
    while offset < end:
        tag_val, offset = _decode_varint(buf, offset, end)
        field_number = tag_val >> 3
        wire_type = tag_val & 0x07

        if field_number in (FIELD_BOOL, FIELD_INT) and wire_type == WIRE_TYPE_VARINT:
            raw, offset = _decode_varint(buf, offset, end)
            result = bool(raw) if field_number == FIELD_BOOL else _unzigzag(raw)
        elif field_number == FIELD_FLOAT and wire_type == WIRE_TYPE_64BIT:
            if offset + 8 > end:
                raise DeserializationFailure("Unexpected end of buffer reading double")
            (result,) = _DOUBLE.unpack_from(buf, offset)
            offset += 8
        elif field_number in (FIELD_STRING, FIELD_BYTES, FIELD_LIST, FIELD_MAP) and (
            wire_type == WIRE_TYPE_LENGTH_DELIMITED
        ):
            start, offset = _read_chunk(buf, offset, end)
            if field_number == FIELD_STRING:
                result = _decode_utf8(buf, start, offset)
            elif field_number == FIELD_BYTES:
                result = bytes(buf[start:offset])
            elif field_number == FIELD_LIST:
                result = _decode_list(buf, start, offset, depth + 1)
            else:
                result = _decode_map(buf, start, offset, depth + 1)
        else:
            offset = _skip_field(buf, offset, wire_type, end)
            continue
        # oneof: last one wins, as in protobuf
        found = True

    if not found:
        raise DeserializationFailure("Value message has no kind set")
    return result


def _decode_list(buf: bytes, offset: int, end: int, depth: int) -> list:
    items: list = []
    while offset < end:
        tag_val, offset = _decode_varint(buf, offset, end)
        if tag_val >> 3 != 1 or tag_val & 0x07 != WIRE_TYPE_LENGTH_DELIMITED:
            offset = _skip_field(buf, offset, tag_val & 0x07, end)
            continue
        start, offset = _read_chunk(buf, offset, end)
        items.append(_decode_value(buf, start, offset, depth))
    return items


def _decode_map(buf: bytes, offset: int, end: int, depth: int) -> Dict[str, Value]:
    result: Dict[str, Value] = {}
    while offset < end:
        tag_val, offset = _decode_varint(buf, offset, end)
        if tag_val >> 3 != 1 or tag_val & 0x07 != WIRE_TYPE_LENGTH_DELIMITED:
            offset = _skip_field(buf, offset, tag_val & 0x07, end)
            continue

        entry_start, offset = _read_chunk(buf, offset, end)
        pos = entry_start
        key = None
        has_value = False
        value: Value = None
        while pos < offset:
            inner_tag, pos = _decode_varint(buf, pos, offset)
            inner_field = inner_tag >> 3
            inner_wire = inner_tag & 0x07
            if inner_wire != WIRE_TYPE_LENGTH_DELIMITED or inner_field not in (1, 2):
                pos = _skip_field(buf, pos, inner_wire, offset)
                continue
            start, pos = _read_chunk(buf, pos, offset)
            if inner_field == 1:
                key = _decode_utf8(buf, start, pos)
            else:
                value = _decode_value(buf, start, pos, depth)
                has_value = True

        if key is None or not has_value:
            raise DeserializationFailure("Map entry is missing its key or value")
        result[key] = value

    return result


def encode_cache(data: Dict[str, Value]) -> bytes:
    """Encode a box cache as MapValue protobuf bytes."""
    if not isinstance(data, dict):
        raise EncodeFailure(f"Cache must be a dict, got {type(data).__name__}")
    return _encode_map(data, 0)


def decode_cache(buf: bytes) -> Dict[str, Value]:
    """Decode MapValue protobuf bytes into a box cache."""
    return _decode_map(bytes(buf), 0, len(buf), 0)


class ValueCodec:
    """Default CacheCodec: the protobuf wire format above."""

    def encode(self, cache: Dict[str, Value]) -> bytes:
        return encode_cache(cache)

    def decode(self, data: bytes) -> Dict[str, Value]:
        return decode_cache(data)
