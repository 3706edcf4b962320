"""Artifact repositories and the rules that pick one for a coordinate."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ktbridge.maven.coord import Coordinate


@dataclass(frozen=True)
class Registry:
    """An artifact repository.

    ``match`` decides whether the registry serves a coordinate; a registry
    without one is a catch-all fallback.
    """

    name: str
    base_url: str
    match: Callable[[Coordinate], bool] | None = field(default=None, compare=False)

    def matches(self, coord: Coordinate) -> bool:
        """Whether this registry serves ``coord``."""
        return True if self.match is None else bool(self.match(coord))


def _group_in(prefixes: tuple[str, ...], exact: tuple[str, ...]) -> Callable[[Coordinate], bool]:
    def match(coord: Coordinate) -> bool:
        return coord.group_id.startswith(prefixes) or coord.group_id in exact

    return match


MAVEN_CENTRAL = Registry(name="MavenCentral", base_url="https://repo1.maven.org/maven2")

JITPACK = Registry(
    name="JitPack",
    base_url="https://jitpack.io",
    match=_group_in(
        ("com.github.", "com.gitlab.", "com.bitbucket."),
        ("com.github", "com.gitlab", "com.bitbucket"),
    ),
)

GOOGLE_MAVEN = Registry(
    name="GoogleMaven",
    base_url="https://maven.google.com",
    match=_group_in(
        ("com.google.", "com.android.", "androidx."),
        ("android", "com.google.android"),
    ),
)


def new_custom_registry(name: str, base_url: str) -> Registry:
    """A catch-all registry at ``base_url``."""
    return Registry(name=name, base_url=base_url.rstrip("/"))


def registry_for(registries: Iterable[Registry], coord: Coordinate) -> Registry:
    """Pick the registry that serves ``coord``.

    The first registry whose matcher accepts the coordinate wins; otherwise
    the first catch-all registry; otherwise Maven Central.
    """
    fallback: Registry | None = None
    for registry in registries:
        if registry.match is None:
            if fallback is None:
                fallback = registry
            continue
        if registry.match(coord):
            return registry
    return fallback if fallback is not None else MAVEN_CENTRAL