"""Protocol buffer wire format reading and Kotlin metadata flag helpers."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Union

from ktbridge.metadata.model import ClassKind

VARINT = 0
FIXED64 = 1
BYTES = 2
START_GROUP = 3
END_GROUP = 4
FIXED32 = 5

_MAX_FIELD_NUMBER = (1 << 29) - 1
_MAX_VARINT_BYTES = 10

FieldValue = Union[int, bytes]


class WireError(ValueError):
    """Raised on malformed protocol buffer wire data."""


def read_varint(data: bytes, pos: int) -> tuple[int, int]:
    """Read a base-128 varint at ``pos``; return the value and the next position."""
    result = 0
    for i in range(_MAX_VARINT_BYTES):
        if pos + i >= len(data):
            raise WireError(f"unexpected end of data in varint at offset {pos}")
        byte = data[pos + i]
        if i == _MAX_VARINT_BYTES - 1 and byte > 1:
            raise WireError(f"varint overflow at offset {pos}")
        result |= (byte & 0x7F) << (7 * i)
        if byte < 0x80:
            return result, pos + i + 1
    raise WireError(f"varint overflow at offset {pos}")


def _read_tag(data: bytes, pos: int) -> tuple[int, int, int]:
    tag, pos = read_varint(data, pos)
    number, wire_type = tag >> 3, tag & 0x7
    if number < 1 or number > _MAX_FIELD_NUMBER:
        raise WireError(f"invalid field number {number}")
    return number, wire_type, pos


def _take(data: bytes, pos: int, n: int) -> tuple[bytes, int]:
    if pos + n > len(data):
        raise WireError(f"unexpected end of data at offset {pos} (need {n} bytes)")
    return data[pos : pos + n], pos + n


def _read_value(data: bytes, pos: int, number: int, wire_type: int) -> tuple[FieldValue, int]:
    if wire_type == VARINT:
        return read_varint(data, pos)
    if wire_type == FIXED64:
        return _take(data, pos, 8)
    if wire_type == FIXED32:
        return _take(data, pos, 4)
    if wire_type == BYTES:
        length, pos = read_varint(data, pos)
        return _take(data, pos, length)
    if wire_type == START_GROUP:
        start = pos
        while True:
            if pos >= len(data):
                raise WireError(f"unterminated group for field {number}")
            inner_number, inner_type, after_tag = _read_tag(data, pos)
            if inner_type == END_GROUP:
                if inner_number != number:
                    raise WireError(f"mismatched end group: {inner_number} inside {number}")
                return data[start:pos], after_tag
            _, pos = _read_value(data, after_tag, inner_number, inner_type)
    if wire_type == END_GROUP:
        raise WireError(f"unexpected end group for field {number}")
    raise WireError(f"invalid wire type {wire_type} for field {number}")


def iter_fields(data: bytes) -> Iterator[tuple[int, int, FieldValue]]:
    """Yield ``(field number, wire type, value)`` for each field of a message.

    Varints give an int; length-delimited and fixed-width fields give their
    raw bytes; groups give the bytes between their start and end tags.
    """
    data = bytes(data)
    pos = 0
    while pos < len(data):
        number, wire_type, pos = _read_tag(data, pos)
        value, pos = _read_value(data, pos, number, wire_type)
        yield number, wire_type, value


def str_at(d2: Sequence[str], idx: int) -> str:
    """Entry ``idx`` of the string table, or a ``?idx<n>`` marker when out of range."""
    if idx < 0 or idx >= len(d2):
        return f"?idx{idx}"
    return d2[idx]


def is_public_visible(flags: int) -> bool:
    """Whether visibility bits 3-5 say public (3) or internal (0)."""
    return (flags >> 3) & 0x7 in (0, 3)


_CLASS_KINDS = {
    0: ClassKind.CLASS,
    1: ClassKind.INTERFACE,
    2: ClassKind.ENUM_CLASS,
    3: ClassKind.CLASS,
    4: ClassKind.ANNOTATION_CLASS,
    5: ClassKind.OBJECT,
    6: ClassKind.COMPANION_OBJECT,
}


def class_kind_from_flags(flags: int) -> ClassKind:
    """The class kind held in bits 6-8 of class flags; enum entries count as classes."""
    return _CLASS_KINDS.get((flags >> 6) & 0x7, ClassKind.CLASS)