"""Gradle Module Metadata (.module) documents."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import IO, Any, Union

Source = Union[bytes, str, IO[bytes], IO[str]]


class GradleModuleError(ValueError):
    """Raised when a Gradle Module Metadata document cannot be parsed."""


@dataclass
class GMComponent:
    """Component identity."""

    group: str = ""
    module: str = ""
    version: str = ""


@dataclass
class ModuleFile:
    """A file artifact of a variant."""

    name: str = ""
    url: str = ""
    sha256: str = ""
    md5: str = ""
    size: int = 0


@dataclass
class GMVersionConstraint:
    """A dependency's version requirements."""

    requires: str = ""
    prefers: str = ""
    strictly: str = ""

    def resolved_version(self) -> str:
        """The most specific version: strictly, then requires, then prefers."""
        return self.strictly or self.requires or self.prefers


@dataclass
class GMExclusion:
    """An excluded group and module."""

    group: str = ""
    module: str = ""


@dataclass
class GMDependency:
    """A dependency of a variant."""

    group: str = ""
    module: str = ""
    version: GMVersionConstraint = field(default_factory=GMVersionConstraint)
    exclusions: list[GMExclusion] = field(default_factory=list)


@dataclass
class GMDependencyConstraint:
    """A dependency version constraint of a variant."""

    group: str = ""
    module: str = ""
    version: GMVersionConstraint = field(default_factory=GMVersionConstraint)


@dataclass
class Variant:
    """One variant of a module."""

    name: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    files: list[ModuleFile] = field(default_factory=list)
    dependencies: list[GMDependency] = field(default_factory=list)
    dependency_constraints: list[GMDependencyConstraint] = field(default_factory=list)


@dataclass
class GradleModule:
    """The contents of a .module file."""

    format_version: str = ""
    component: GMComponent = field(default_factory=GMComponent)
    variants: list[Variant] = field(default_factory=list)


def _obj(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise GradleModuleError(f"gradle-module: {where}: expected object, got {type(value).__name__}")
    return value


def _str(obj: dict[str, Any], key: str, where: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise GradleModuleError(f"gradle-module: {where}.{key}: expected string, got {type(value).__name__}")
    return value


def _int(obj: dict[str, Any], key: str, where: str) -> int:
    value = obj.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise GradleModuleError(f"gradle-module: {where}.{key}: expected integer, got {type(value).__name__}")
    return value


def _list(obj: dict[str, Any], key: str, where: str) -> list[Any]:
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise GradleModuleError(f"gradle-module: {where}.{key}: expected array, got {type(value).__name__}")
    return value


def _constraint(raw: Any, where: str) -> GMVersionConstraint:
    obj = _obj(raw, where)
    return GMVersionConstraint(
        requires=_str(obj, "requires", where),
        prefers=_str(obj, "prefers", where),
        strictly=_str(obj, "strictly", where),
    )


def _file(raw: Any, where: str) -> ModuleFile:
    obj = _obj(raw, where)
    return ModuleFile(
        name=_str(obj, "name", where),
        url=_str(obj, "url", where),
        sha256=_str(obj, "sha256", where),
        md5=_str(obj, "md5", where),
        size=_int(obj, "size", where),
    )


def _dependency(raw: Any, where: str) -> GMDependency:
    obj = _obj(raw, where)
    exclusions = []
    for item in _list(obj, "excludes", where):
        ex = _obj(item, f"{where}.excludes")
        exclusions.append(
            GMExclusion(group=_str(ex, "group", where), module=_str(ex, "module", where))
        )
    return GMDependency(
        group=_str(obj, "group", where),
        module=_str(obj, "module", where),
        version=_constraint(obj.get("version"), f"{where}.version"),
        exclusions=exclusions,
    )


def _dependency_constraint(raw: Any, where: str) -> GMDependencyConstraint:
    obj = _obj(raw, where)
    return GMDependencyConstraint(
        group=_str(obj, "group", where),
        module=_str(obj, "module", where),
        version=_constraint(obj.get("version"), f"{where}.version"),
    )


def _attributes(raw: Any, where: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for key, value in _obj(raw, where).items():
        if value is None:
            attrs[key] = ""
        elif isinstance(value, str):
            attrs[key] = value
        else:
            raise GradleModuleError(
                f"gradle-module: {where}.{key}: expected string, got {type(value).__name__}"
            )
    return attrs


def _variant(raw: Any, where: str) -> Variant:
    obj = _obj(raw, where)
    return Variant(
        name=_str(obj, "name", where),
        attributes=_attributes(obj.get("attributes"), f"{where}.attributes"),
        files=[_file(f, f"{where}.files") for f in _list(obj, "files", where)],
        dependencies=[
            _dependency(d, f"{where}.dependencies") for d in _list(obj, "dependencies", where)
        ],
        dependency_constraints=[
            _dependency_constraint(d, f"{where}.dependencyConstraints")
            for d in _list(obj, "dependencyConstraints", where)
        ],
    )


def parse_gradle_module(data: Source) -> GradleModule:
    """Parse a Gradle Module Metadata JSON document from bytes, text or a file."""
    if hasattr(data, "read"):
        data = data.read()
    try:
        document = json.loads(data)
    except ValueError as exc:
        raise GradleModuleError(f"gradle-module: json parse error: {exc}") from exc

    obj = _obj(document, "document")
    component = _obj(obj.get("component"), "component")
    return GradleModule(
        format_version=_str(obj, "formatVersion", "document"),
        component=GMComponent(
            group=_str(component, "group", "component"),
            module=_str(component, "module", "component"),
            version=_str(component, "version", "component"),
        ),
        variants=[_variant(v, "variants") for v in _list(obj, "variants", "document")],
    )


def select_jvm_variant(module: GradleModule | None) -> Variant | None:
    """Pick the JVM variant, preferring java-api usage over java-runtime.

    Variants whose Kotlin platform type is set to anything but ``jvm`` are
    ignored. Returns None when nothing suits.
    """
    if module is None:
        return None
    api: Variant | None = None
    runtime: Variant | None = None
    for variant in module.variants:
        platform = variant.attributes.get("org.jetbrains.kotlin.platform.type", "")
        if platform and platform != "jvm":
            continue
        usage = variant.attributes.get("org.gradle.usage", "")
        if usage == "java-api" and api is None:
            api = variant
        elif usage == "java-runtime" and runtime is None:
            runtime = variant
    return api if api is not None else runtime