"""Reading the Kotlin API surface of every top-level class in a JAR."""

from __future__ import annotations

import io
import os
import zipfile
import zlib
from collections.abc import Iterator

from ktbridge.metadata.classreader import (
    ClassFormatError,
    NoKotlinMetadataError,
    RawMetadata,
    extract_metadata,
)
from ktbridge.metadata.model import APIObject, ClassKind
from ktbridge.metadata.proto import ProtoDecodeError, decode_class, decode_package

_KIND_CLASS = 1
_KIND_FILE_FACADE = 2
_KIND_MULTI_FILE_FACADE = 5


class IngestError(Exception):
    """Raised when a JAR cannot be opened as a ZIP archive."""


def _is_top_level_class(entry_name: str) -> bool:
    if not entry_name.endswith(".class"):
        return False
    base_name = entry_name.rsplit("/", 1)[-1]
    return "$" not in base_name


def _multi_file_facade(raw: RawMetadata) -> APIObject:
    obj = APIObject(
        kind=ClassKind.FILE_FACADE,
        metadata_schema_version=tuple(raw.version),
    )
    if raw.xs:
        obj.class_name = raw.xs.replace("/", ".")
        obj.jvm_class_name = raw.xs
    return obj


def _api_object(class_bytes: bytes) -> APIObject | None:
    """The API object of one class file, or None when it contributes nothing."""
    raw = extract_metadata(class_bytes)
    if raw.kind == _KIND_CLASS:
        return decode_class(raw)
    if raw.kind == _KIND_FILE_FACADE:
        return decode_package(raw)
    if raw.kind == _KIND_MULTI_FILE_FACADE:
        return _multi_file_facade(raw)
    # Synthetic classes, multi-file parts and unknown kinds carry no API.
    return None


def _iter_api_objects(archive: zipfile.ZipFile) -> Iterator[APIObject]:
    for info in archive.infolist():
        if not _is_top_level_class(info.filename):
            continue
        try:
            obj = _api_object(archive.read(info))
        except (NoKotlinMetadataError, ClassFormatError, ProtoDecodeError):
            continue
        except (zipfile.BadZipFile, zlib.error, OSError, NotImplementedError):
            # An unreadable entry is skipped rather than failing the whole JAR.
            continue
        if obj is not None:
            yield obj


def _open_archive(source: str | os.PathLike[str] | io.BytesIO, what: str) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(source)
    except (zipfile.BadZipFile, OSError, ValueError) as exc:
        raise IngestError(f"ingest: {what}: {exc}") from exc


def ingest_jar(path: str | os.PathLike[str]) -> list[APIObject]:
    """Read the JAR at ``path`` and return its top-level API objects.

    Nested classes (``Outer$Inner.class``) and classes without Kotlin
    metadata or with malformed data are skipped.
    """
    with _open_archive(path, f"open JAR {os.fspath(path)!r}") as archive:
        return list(_iter_api_objects(archive))


def ingest_jar_bytes(data: bytes) -> list[APIObject]:
    """Like :func:`ingest_jar`, for a JAR held in memory."""
    with _open_archive(io.BytesIO(bytes(data)), "parse JAR bytes") as archive:
        return list(_iter_api_objects(archive))