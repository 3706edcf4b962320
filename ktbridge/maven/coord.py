"""Maven coordinates and their repository layout paths."""

from __future__ import annotations

from dataclasses import dataclass


class InvalidCoordinateError(ValueError):
    """Raised when a coordinate string cannot be parsed."""

    def __init__(self, text: str) -> None:
        super().__init__(
            f"invalid Maven coordinate {text!r}: "
            "expected <groupId>:<artifactId>[@<version>[@<classifier>]]"
        )
        self.input = text


@dataclass(frozen=True)
class Coordinate:
    """Identifies a Maven artifact."""

    group_id: str
    artifact_id: str
    version: str = ""
    classifier: str = ""

    def __str__(self) -> str:
        text = f"{self.group_id}:{self.artifact_id}"
        if self.version:
            text += f"@{self.version}"
        if self.classifier:
            text += f"@{self.classifier}"
        return text

    def group_path(self) -> str:
        """The group ID with dots replaced by slashes."""
        return self.group_id.replace(".", "/")

    def _version_dir(self) -> str:
        return f"{self.group_path()}/{self.artifact_id}/{self.version}"

    def jar_path(self) -> str:
        """Relative repository path of the JAR artifact."""
        name = f"{self.artifact_id}-{self.version}"
        if self.classifier:
            name += f"-{self.classifier}"
        return f"{self._version_dir()}/{name}.jar"

    def pom_path(self) -> str:
        """Relative repository path of the POM."""
        return f"{self._version_dir()}/{self.artifact_id}-{self.version}.pom"

    def module_path(self) -> str:
        """Relative repository path of the Gradle Module Metadata file."""
        return f"{self._version_dir()}/{self.artifact_id}-{self.version}.module"

    def metadata_path(self) -> str:
        """Relative path of maven-metadata.xml for the group and artifact."""
        return f"{self.group_path()}/{self.artifact_id}/maven-metadata.xml"


def parse_coordinate(s: str) -> Coordinate:
    """Parse ``<groupId>:<artifactId>[@<version>[@<classifier>]]``."""
    s = s.strip()
    at_parts = s.split("@", 2)
    colon_parts = at_parts[0].split(":", 1)
    if len(colon_parts) != 2 or not colon_parts[0] or not colon_parts[1]:
        raise InvalidCoordinateError(s)
    group_id, artifact_id = colon_parts
    version = at_parts[1] if len(at_parts) >= 2 else ""
    classifier = at_parts[2] if len(at_parts) >= 3 else ""
    return Coordinate(group_id, artifact_id, version, classifier)