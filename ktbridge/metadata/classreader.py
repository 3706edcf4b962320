"""Extraction of the ``@kotlin.Metadata`` annotation from JVM class files."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Union

_MAGIC = 0xCAFEBABE
_KOTLIN_METADATA = "Lkotlin/Metadata;"
_ANNOTATIONS_ATTRIBUTE = "RuntimeVisibleAnnotations"

# Constant pool tags whose payload is skipped, with the payload size in bytes.
_SKIPPED_CONSTANTS = {
    4: 4,  # Float
    7: 2,  # Class
    8: 2,  # String
    16: 2,  # MethodType
    19: 2,  # Module
    20: 2,  # Package
    9: 4,  # Fieldref
    10: 4,  # Methodref
    11: 4,  # InterfaceMethodref
    12: 4,  # NameAndType
    17: 4,  # Dynamic
    18: 4,  # InvokeDynamic
    15: 3,  # MethodHandle
}

ElementValue = Union[int, bytes, list, None]


class ClassFormatError(ValueError):
    """Raised when class file data is malformed."""


class NoKotlinMetadataError(LookupError):
    """Raised when a class file carries no ``@kotlin.Metadata`` annotation."""

    def __init__(self) -> None:
        super().__init__("class has no @kotlin.Metadata annotation")


@dataclass
class RawMetadata:
    """The raw fields of a ``@kotlin.Metadata`` annotation.

    ``d1`` holds the joined d1 strings as raw bytes; ``d2`` is the string table.
    """

    kind: int = 0
    version: tuple[int, int, int] = (0, 0, 0)
    d1: bytes = b""
    d2: list[str] = field(default_factory=list)
    xs: str = ""
    xi: int = 0


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


@contextmanager
def _step(what: str) -> Iterator[None]:
    try:
        yield
    except ClassFormatError as exc:
        raise ClassFormatError(f"classreader: {what}: {exc}") from exc


class _Reader:
    """Forward-only big-endian reader over a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _advance(self, n: int) -> int:
        start = self._pos
        if start + n > len(self._data):
            raise ClassFormatError(f"unexpected EOF at offset {start} (need {n} bytes)")
        self._pos = start + n
        return start

    def take(self, n: int) -> bytes:
        start = self._advance(n)
        return self._data[start : start + n]

    def skip(self, n: int) -> None:
        self._advance(n)

    def u8(self) -> int:
        return self._data[self._advance(1)]

    def u16(self) -> int:
        return struct.unpack_from(">H", self._data, self._advance(2))[0]

    def u32(self) -> int:
        return struct.unpack_from(">I", self._data, self._advance(4))[0]

    def i32(self) -> int:
        return struct.unpack_from(">i", self._data, self._advance(4))[0]


@dataclass
class _ConstantPool:
    utf8: dict[int, bytes] = field(default_factory=dict)
    integer: dict[int, int] = field(default_factory=dict)

    def text(self, idx: int) -> str:
        return _decode(self.utf8.get(idx, b""))


def _read_constant_pool(reader: _Reader) -> _ConstantPool:
    with _step("cannot read constant pool count"):
        count = reader.u16()
    pool = _ConstantPool()
    index = 1
    while index < count:
        with _step(f"constant pool entry {index}"):
            tag = reader.u8()
            if tag == 1:
                pool.utf8[index] = reader.take(reader.u16())
            elif tag == 3:
                pool.integer[index] = reader.i32()
            elif tag in (5, 6):
                reader.skip(8)
                index += 1  # Long and Double take two slots
            elif tag in _SKIPPED_CONSTANTS:
                reader.skip(_SKIPPED_CONSTANTS[tag])
            else:
                raise ClassFormatError(f"unknown constant pool tag {tag} at index {index}")
        index += 1
    return pool


def _skip_attributes(reader: _Reader) -> None:
    for _ in range(reader.u16()):
        reader.skip(2)
        reader.skip(reader.u32())


def _skip_members(reader: _Reader) -> None:
    for _ in range(reader.u16()):
        reader.skip(6)
        _skip_attributes(reader)


def _element_value(reader: _Reader, pool: _ConstantPool) -> ElementValue:
    tag = reader.u8()
    if tag in b"BCFSZIJ":
        return pool.integer.get(reader.u16(), 0)
    if tag == ord("D"):
        reader.skip(2)
        return None
    if tag == ord("e"):
        reader.skip(4)
        return None
    if tag == ord("c"):
        reader.skip(2)
        return None
    if tag == ord("s"):
        return pool.utf8.get(reader.u16(), b"")
    if tag == ord("@"):
        reader.skip(2)
        for _ in range(reader.u16()):
            reader.skip(2)
            _element_value(reader, pool)
        return None
    if tag == ord("["):
        values = []
        for i in range(reader.u16()):
            with _step(f"array element {i}"):
                values.append(_element_value(reader, pool))
        return values
    raise ClassFormatError(f"unknown element value tag: {chr(tag)!r} ({tag})")


def _apply_field(meta: RawMetadata, name: str, value: ElementValue) -> None:
    if name == "k" and isinstance(value, int):
        meta.kind = value
    elif name == "xi" and isinstance(value, int):
        meta.xi = value
    elif name == "mv" and isinstance(value, list):
        version = list(meta.version)
        for i, item in enumerate(value[:3]):
            if isinstance(item, int):
                version[i] = item
        meta.version = (version[0], version[1], version[2])
    elif name == "d1" and isinstance(value, list):
        meta.d1 = b"".join(item for item in value if isinstance(item, bytes))
    elif name == "d2" and isinstance(value, list):
        meta.d2.extend(_decode(item) for item in value if isinstance(item, bytes))
    elif name == "xs" and isinstance(value, bytes):
        meta.xs = _decode(value)


def _parse_annotations(data: bytes, pool: _ConstantPool) -> RawMetadata | None:
    reader = _Reader(data)
    for _ in range(reader.u16()):
        type_name = pool.text(reader.u16())
        is_kotlin = type_name == _KOTLIN_METADATA
        meta = RawMetadata()
        for _ in range(reader.u16()):
            name = pool.text(reader.u16())
            with _step(f"element value for {name!r}"):
                value = _element_value(reader, pool)
            if is_kotlin:
                _apply_field(meta, name, value)
        if is_kotlin:
            return meta
    return None


def extract_metadata(class_bytes: bytes) -> RawMetadata:
    """Read a class file and return its ``@kotlin.Metadata`` fields.

    Raises NoKotlinMetadataError when the annotation is absent and
    ClassFormatError when the class data is malformed.
    """
    reader = _Reader(class_bytes)
    with _step("cannot read magic"):
        magic = reader.u32()
    if magic != _MAGIC:
        raise ClassFormatError(f"classreader: invalid class file magic: {magic:#x}")
    with _step("cannot skip version"):
        reader.skip(4)

    pool = _read_constant_pool(reader)

    with _step("skip access/this/super"):
        reader.skip(6)
    with _step("skip interfaces"):
        reader.skip(reader.u16() * 2)
    with _step("skip fields"):
        _skip_members(reader)
    with _step("skip methods"):
        _skip_members(reader)

    with _step("read class attributes count"):
        attribute_count = reader.u16()
    for _ in range(attribute_count):
        with _step("read class attribute"):
            name_index = reader.u16()
            data = reader.take(reader.u32())
        if pool.text(name_index) == _ANNOTATIONS_ATTRIBUTE:
            with _step(f"parse {_ANNOTATIONS_ATTRIBUTE}"):
                meta = _parse_annotations(data, pool)
            if meta is not None:
                return meta
    raise NoKotlinMetadataError()