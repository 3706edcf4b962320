"""Transitive dependency resolution over Maven POMs."""

from __future__ import annotations

import re
from collections import deque
from collections.abc import Iterable, Iterator

from ktbridge.maven.client import Client, ClientError
from ktbridge.maven.coord import Coordinate
from ktbridge.maven.pom import POM

_INCLUDED_SCOPES = frozenset({"compile", "runtime"})
_VERSION_CORE = re.compile(r"^\d+(?:\.\d+){0,3}$")

Exclusions = frozenset[tuple[str, str]]


def _version_key(version: str) -> tuple | None:
    """A sort key for a version string, or None when it cannot be parsed.

    Numeric components compare numerically; a release sorts above any
    qualified version with the same numbers.
    """
    core, _, qualifier = version.strip().partition("-")
    if not _VERSION_CORE.match(core):
        return None
    numbers = [int(part) for part in core.split(".")]
    numbers += [0] * (4 - len(numbers))
    return (tuple(numbers), 0 if qualifier else 1, qualifier)


def _apply_dep_mgmt(pom: POM) -> None:
    """Fill missing dependency versions from the POM's own dependency management."""
    versions = {
        f"{dm.group_id}:{dm.artifact_id}": dm.version
        for dm in pom.dependency_management
        if dm.type != "pom" and dm.version
    }
    for dep in pom.dependencies:
        if not dep.version:
            dep.version = versions.get(f"{dep.group_id}:{dep.artifact_id}", dep.version)


def _is_excluded(exclusions: Exclusions, group_id: str, artifact_id: str) -> bool:
    return (
        (group_id, artifact_id) in exclusions
        or (group_id, "*") in exclusions
        or ("*", artifact_id) in exclusions
    )


def _children(pom: POM, exclusions: Exclusions) -> Iterator[tuple[Coordinate, Exclusions]]:
    for dep in pom.dependencies:
        if dep.effective_scope().lower() not in _INCLUDED_SCOPES:
            continue
        if dep.is_optional():
            continue
        if not dep.group_id or not dep.artifact_id:
            continue
        if _is_excluded(exclusions, dep.group_id, dep.artifact_id):
            continue

        version = dep.version
        if not version:
            version = next(
                (
                    dm.version
                    for dm in pom.dependency_management
                    if dm.group_id == dep.group_id and dm.artifact_id == dep.artifact_id
                ),
                "",
            )
        if not version:
            continue

        child_exclusions = exclusions | {(ex.group_id, ex.artifact_id) for ex in dep.exclusions}
        yield Coordinate(dep.group_id, dep.artifact_id, version), frozenset(child_exclusions)


def resolve_transitive(client: Client, root_coords: Iterable[Coordinate]) -> list[Coordinate]:
    """Resolve the transitive dependencies of ``root_coords``.

    Only compile and runtime dependencies that are not optional are followed.
    Exclusions propagate to descendants, and where one group and artifact is
    reached at several versions the highest wins. Coordinates come back in
    the order they were first reached, breadth first. Artifacts whose POM
    cannot be fetched stay in the result but are not expanded.
    """
    resolved: dict[str, Coordinate] = {}
    visited: set[str] = set()
    queue: deque[tuple[Coordinate, Exclusions]] = deque(
        (coord, frozenset()) for coord in root_coords
    )

    while queue:
        coord, exclusions = queue.popleft()
        ga_key = f"{coord.group_id}:{coord.artifact_id}"

        existing = resolved.get(ga_key)
        if existing is None:
            resolved[ga_key] = coord
        else:
            old_key = _version_key(existing.version)
            new_key = _version_key(coord.version)
            if old_key is not None and new_key is not None:
                if new_key <= old_key:
                    continue
                resolved[ga_key] = coord

        visit_key = f"{ga_key}@{coord.version}"
        if visit_key in visited:
            continue
        visited.add(visit_key)

        try:
            pom = client.fetch_pom(coord)
        except ClientError:
            continue

        _apply_dep_mgmt(pom)
        queue.extend(_children(pom, exclusions))

    return list(resolved.values())


def resolve_bom(client: Client, coord: Coordinate) -> POM:
    """Fetch a BOM POM for use as dependency management."""
    try:
        return client.fetch_pom(coord)
    except ClientError as exc:
        raise ClientError(f"graph: fetch BOM {coord}: {exc}") from exc