"""Maven POM documents: parsing, property interpolation and inheritance."""

from __future__ import annotations

import dataclasses
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import IO, Union

Source = Union[bytes, str, IO[bytes], IO[str]]


class POMError(ValueError):
    """Raised when a POM document cannot be parsed."""


@dataclass
class Parent:
    """A reference to a parent POM."""

    group_id: str = ""
    artifact_id: str = ""
    version: str = ""
    relative_path: str = ""


@dataclass
class Exclusion:
    """An excluded group and artifact."""

    group_id: str = ""
    artifact_id: str = ""


@dataclass
class Dependency:
    """A single Maven dependency."""

    group_id: str = ""
    artifact_id: str = ""
    version: str = ""
    scope: str = ""
    type: str = ""
    classifier: str = ""
    optional: str = ""
    exclusions: list[Exclusion] = field(default_factory=list)

    def is_optional(self) -> bool:
        """Whether the dependency is marked optional."""
        return self.optional.casefold() == "true"

    def effective_scope(self) -> str:
        """The scope, defaulting to ``compile``."""
        return self.scope or "compile"


@dataclass
class License:
    """A project licence entry."""

    name: str = ""
    url: str = ""
    distribution: str = ""


@dataclass
class Developer:
    """A project developer entry."""

    id: str = ""
    name: str = ""
    email: str = ""


@dataclass
class SCM:
    """Source control information."""

    connection: str = ""
    developer_connection: str = ""
    url: str = ""


@dataclass
class POM:
    """A parsed Maven POM."""

    group_id: str = ""
    artifact_id: str = ""
    version: str = ""
    packaging: str = ""
    name: str = ""
    description: str = ""
    url: str = ""
    parent: Parent | None = None
    licenses: list[License] = field(default_factory=list)
    developers: list[Developer] = field(default_factory=list)
    scm: SCM | None = None
    properties: dict[str, str] = field(default_factory=dict)
    dependencies: list[Dependency] = field(default_factory=list)
    dependency_management: list[Dependency] = field(default_factory=list)

    def effective_group_id(self) -> str:
        """The group ID, falling back to the parent's."""
        if self.group_id:
            return self.group_id
        return self.parent.group_id if self.parent is not None else ""

    def effective_version(self) -> str:
        """The version, falling back to the parent's."""
        if self.version:
            return self.version
        return self.parent.version if self.parent is not None else ""

    def effective_packaging(self) -> str:
        """The packaging, defaulting to ``jar``."""
        return self.packaging or "jar"

    def apply_bom(self, bom: POM) -> None:
        """Fill in missing dependency versions from a BOM's dependency management."""
        versions = {
            f"{d.group_id}:{d.artifact_id}": d.version
            for d in bom.dependency_management
            if d.version
        }
        for dep in self.dependencies:
            if not dep.version:
                dep.version = versions.get(f"{dep.group_id}:{dep.artifact_id}", dep.version)

    def merge_parent(self, parent: POM) -> None:
        """Fill in missing values from a parent POM; the child's own values win."""
        if not self.group_id:
            self.group_id = parent.group_id
        if not self.version:
            self.version = parent.version
        for key, value in parent.properties.items():
            self.properties.setdefault(key, value)
        existing = {f"{d.group_id}:{d.artifact_id}" for d in self.dependency_management}
        for dep in parent.dependency_management:
            if f"{dep.group_id}:{dep.artifact_id}" not in existing:
                self.dependency_management.append(dataclasses.replace(dep))


def _local(tag: object) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _text(elem: ET.Element) -> str:
    return (elem.text or "") + "".join(child.tail or "" for child in elem)


def _fields(elem: ET.Element) -> dict[str, str]:
    return {_local(child.tag): _text(child) for child in elem}


def _path(elem: ET.Element, *names: str) -> list[ET.Element]:
    """Elements reached by following child names, in document order."""
    current = [elem]
    for name in names:
        current = [child for parent in current for child in parent if _local(child.tag) == name]
    return current


def _last(elem: ET.Element, name: str) -> ET.Element | None:
    found = _path(elem, name)
    return found[-1] if found else None


def _dependency(elem: ET.Element) -> Dependency:
    f = _fields(elem)
    return Dependency(
        group_id=f.get("groupId", ""),
        artifact_id=f.get("artifactId", ""),
        version=f.get("version", ""),
        scope=f.get("scope", ""),
        type=f.get("type", ""),
        classifier=f.get("classifier", ""),
        optional=f.get("optional", ""),
        exclusions=[
            Exclusion(
                group_id=_fields(ex).get("groupId", ""),
                artifact_id=_fields(ex).get("artifactId", ""),
            )
            for ex in _path(elem, "exclusions", "exclusion")
        ],
    )


def interpolate(s: str, props: dict[str, str]) -> str:
    """Replace ``${name}`` references with values from ``props``.

    Unknown references and an unterminated ``${`` are left as they are.
    """
    if "${" not in s:
        return s
    out: list[str] = []
    while True:
        start = s.find("${")
        if start < 0:
            out.append(s)
            break
        end = s.find("}", start)
        if end < 0:
            out.append(s)
            break
        out.append(s[:start])
        key = s[start + 2 : end]
        out.append(props[key] if key in props else s[start : end + 1])
        s = s[end + 1 :]
    return "".join(out)


def _interpolate_dep(dep: Dependency, props: dict[str, str]) -> None:
    dep.group_id = interpolate(dep.group_id, props)
    dep.artifact_id = interpolate(dep.artifact_id, props)
    dep.version = interpolate(dep.version, props)
    dep.scope = interpolate(dep.scope, props)
    dep.classifier = interpolate(dep.classifier, props)


def parse_pom(data: Source) -> POM:
    """Parse a POM from bytes, text or a file and interpolate its properties."""
    if hasattr(data, "read"):
        data = data.read()
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise POMError(f"pom: xml parse error: {exc}") from exc
    if _local(root.tag) != "project":
        raise POMError(
            f"pom: xml parse error: expected element <project> but have <{_local(root.tag)}>"
        )

    f = _fields(root)
    pom = POM(
        group_id=f.get("groupId", ""),
        artifact_id=f.get("artifactId", ""),
        version=f.get("version", ""),
        packaging=f.get("packaging", ""),
        name=f.get("name", ""),
        description=f.get("description", ""),
        url=f.get("url", ""),
    )

    parent = _last(root, "parent")
    if parent is not None:
        pf = _fields(parent)
        pom.parent = Parent(
            group_id=pf.get("groupId", ""),
            artifact_id=pf.get("artifactId", ""),
            version=pf.get("version", ""),
            relative_path=pf.get("relativePath", ""),
        )

    scm = _last(root, "scm")
    if scm is not None:
        sf = _fields(scm)
        pom.scm = SCM(
            connection=sf.get("connection", ""),
            developer_connection=sf.get("developerConnection", ""),
            url=sf.get("url", ""),
        )

    for elem in _path(root, "licenses", "license"):
        lf = _fields(elem)
        pom.licenses.append(
            License(name=lf.get("name", ""), url=lf.get("url", ""), distribution=lf.get("distribution", ""))
        )
    for elem in _path(root, "developers", "developer"):
        df = _fields(elem)
        pom.developers.append(
            Developer(id=df.get("id", ""), name=df.get("name", ""), email=df.get("email", ""))
        )

    pom.dependencies = [_dependency(e) for e in _path(root, "dependencies", "dependency")]
    pom.dependency_management = [
        _dependency(e) for e in _path(root, "dependencyManagement", "dependencies", "dependency")
    ]

    properties = _last(root, "properties")
    if properties is not None:
        for child in properties:
            name = _local(child.tag)
            if name:
                pom.properties[name] = _text(child)

    pom.properties["project.groupId"] = pom.effective_group_id()
    pom.properties["project.artifactId"] = pom.artifact_id
    pom.properties["project.version"] = pom.effective_version()

    pom.group_id = interpolate(pom.group_id, pom.properties)
    pom.artifact_id = interpolate(pom.artifact_id, pom.properties)
    pom.version = interpolate(pom.version, pom.properties)
    for dep in pom.dependencies:
        _interpolate_dep(dep, pom.properties)
    for dep in pom.dependency_management:
        _interpolate_dep(dep, pom.properties)
    return pom