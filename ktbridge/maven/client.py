"""HTTP client for Maven repositories."""

from __future__ import annotations

import urllib.error
import urllib.request
from collections.abc import Iterable

from ktbridge.maven.coord import Coordinate
from ktbridge.maven.gmm import GradleModule, GradleModuleError, parse_gradle_module
from ktbridge.maven.metadata_xml import MavenMetadata, MavenMetadataError, parse_maven_metadata
from ktbridge.maven.pom import POM, POMError, parse_pom
from ktbridge.maven.registry import MAVEN_CENTRAL, Registry, registry_for


class ClientError(Exception):
    """Raised when a repository request or its response fails."""


class NotFoundError(ClientError):
    """Raised when the repository answers HTTP 404."""

    def __init__(self, url: str, status: int = 404) -> None:
        super().__init__(f"artifact not found: {url} (HTTP {status})")
        self.url = url
        self.status = status


class Client:
    """Fetches POMs, maven-metadata.xml and Gradle Module Metadata.

    Registries are consulted in order; with none given, Maven Central is used.
    """

    def __init__(self, registries: Iterable[Registry] | None = None, timeout: float | None = 30.0) -> None:
        self.registries: tuple[Registry, ...] = tuple(registries or ())
        self.timeout = timeout

    def _registry(self, coord: Coordinate) -> Registry:
        if not self.registries:
            return MAVEN_CENTRAL
        return registry_for(self.registries, coord)

    def artifact_url(self, coord: Coordinate, ext: str) -> str:
        """Full URL of the artifact file with extension ``ext``."""
        base = self._registry(coord).base_url.rstrip("/")
        name = f"{coord.artifact_id}-{coord.version}"
        if coord.classifier:
            name += f"-{coord.classifier}"
        return f"{base}/{coord.group_path()}/{coord.artifact_id}/{coord.version}/{name}.{ext}"

    def metadata_url(self, group_id: str, artifact_id: str) -> str:
        """Full URL of maven-metadata.xml for a group and artifact."""
        coord = Coordinate(group_id, artifact_id)
        base = self._registry(coord).base_url.rstrip("/")
        return f"{base}/{coord.metadata_path()}"

    def fetch_pom(self, coord: Coordinate) -> POM:
        """Fetch and parse the POM of ``coord``."""
        url = self.artifact_url(coord, "pom")
        body = self._get(url)
        try:
            return parse_pom(body)
        except POMError as exc:
            raise ClientError(f"client: parse POM {url}: {exc}") from exc

    def fetch_maven_metadata(self, group_id: str, artifact_id: str) -> MavenMetadata:
        """Fetch and parse maven-metadata.xml for a group and artifact."""
        url = self.metadata_url(group_id, artifact_id)
        body = self._get(url)
        try:
            return parse_maven_metadata(body)
        except MavenMetadataError as exc:
            raise ClientError(f"client: parse maven-metadata {url}: {exc}") from exc

    def fetch_gradle_module(self, coord: Coordinate) -> GradleModule:
        """Fetch and parse the Gradle Module Metadata of ``coord``."""
        url = self.artifact_url(coord, "module")
        body = self._get(url)
        try:
            return parse_gradle_module(body)
        except GradleModuleError as exc:
            raise ClientError(f"client: parse gradle module {url}: {exc}") from exc

    def _get(self, url: str) -> bytes:
        try:
            request = urllib.request.Request(url, method="GET")
        except ValueError as exc:
            raise ClientError(f"client: build request {url}: {exc}") from exc
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as exc:
            exc.close()
            if exc.code == 404:
                raise NotFoundError(url, exc.code) from None
            raise ClientError(f"client: GET {url} returned HTTP {exc.code}") from None
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise ClientError(f"client: GET {url}: {exc}") from exc
        if status != 200:
            raise ClientError(f"client: GET {url} returned HTTP {status}")
        return body