"""maven-metadata.xml documents."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import IO, Union

Source = Union[bytes, str, IO[bytes], IO[str]]


class MavenMetadataError(ValueError):
    """Raised when maven-metadata.xml cannot be parsed."""


@dataclass
class Versioning:
    """Version information of an artifact."""

    latest: str = ""
    release: str = ""
    versions: list[str] = field(default_factory=list)
    last_updated: str = ""


@dataclass
class MavenMetadata:
    """The contents of a maven-metadata.xml file."""

    group_id: str = ""
    artifact_id: str = ""
    versioning: Versioning = field(default_factory=Versioning)


def _local(tag: object) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _text(elem: ET.Element) -> str:
    return (elem.text or "") + "".join(child.tail or "" for child in elem)


def _fill_versioning(versioning: Versioning, elem: ET.Element) -> None:
    for child in elem:
        name = _local(child.tag)
        if name == "latest":
            versioning.latest = _text(child)
        elif name == "release":
            versioning.release = _text(child)
        elif name == "lastUpdated":
            versioning.last_updated = _text(child)
        elif name == "versions":
            versioning.versions.extend(
                _text(v) for v in child if _local(v.tag) == "version"
            )


def parse_maven_metadata(data: Source) -> MavenMetadata:
    """Parse maven-metadata.xml from bytes, text or a file."""
    if hasattr(data, "read"):
        data = data.read()
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise MavenMetadataError(f"maven-metadata: xml parse error: {exc}") from exc
    if _local(root.tag) != "metadata":
        raise MavenMetadataError(
            f"maven-metadata: xml parse error: expected element <metadata> but have <{_local(root.tag)}>"
        )

    meta = MavenMetadata()
    for child in root:
        name = _local(child.tag)
        if name == "groupId":
            meta.group_id = _text(child)
        elif name == "artifactId":
            meta.artifact_id = _text(child)
        elif name == "versioning":
            _fill_versioning(meta.versioning, child)
    return meta