# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath


class InvalidCoordinateString(ValueError):
    """The coordinate string being passed is invalid or malformed."""

    def __init__(self, coords: str) -> None:
        super().__init__(f"Received invalid artifact coordinates: {coords}")


@dataclass(frozen=True)
class ArtifactHandler:
    """How a Maven dependency `type` maps onto the file that is actually published."""

    extension: str
    classifier: str | None = None


# The stock Maven artifact handlers; any other type uses itself as the extension.
ARTIFACT_HANDLERS: dict[str, ArtifactHandler] = {
    "pom": ArtifactHandler("pom"),
    "jar": ArtifactHandler("jar"),
    "test-jar": ArtifactHandler("jar", classifier="tests"),
    "maven-plugin": ArtifactHandler("jar"),
    "ejb": ArtifactHandler("jar"),
    "ejb-client": ArtifactHandler("jar", classifier="client"),
    "java-source": ArtifactHandler("jar", classifier="sources"),
    "javadoc": ArtifactHandler("jar", classifier="javadoc"),
    "bundle": ArtifactHandler("jar"),
}

SNAPSHOT = "SNAPSHOT"


@dataclass(frozen=True, order=True)
class ArtifactCoordinate:
    """A single Maven-style coordinate for an artifact in a remote repository.

    Two coordinates are equal iff all five fields match exactly: in particular the version is
    compared as the requested string, so `[1.0,2.0)` and `1.5` are distinct even if the former
    resolves to the latter.

    The string form follows Aether's `DefaultArtifact`:

        ${group}:${artifact}[:${packaging}[:${classifier}]]:${version}
    """

    REGEX = re.compile("([^: ]+):([^: ]+)(:([^: ]*)(:([^: ]+))?)?:([^: ]+)")

    group: str
    artifact: str
    version: str
    packaging: str = "jar"
    classifier: str | None = None

    @classmethod
    def from_coord_str(cls, s: str) -> ArtifactCoordinate:
        """Parses from a coordinate string with optional `packaging` and `classifier` coordinates.

        See the classdoc for more information on the format.
        """
        parts = ArtifactCoordinate.REGEX.fullmatch(s.strip())
        if parts is None:
            raise InvalidCoordinateString(s)
        packaging_part = parts.group(4)
        return cls(
            group=parts.group(1),
            artifact=parts.group(2),
            packaging=packaging_part or "jar",
            classifier=parts.group(6),
            version=parts.group(7),
        )

    def to_coord_str(self, versioned: bool = True) -> str:
        unversioned = f"{self.group}:{self.artifact}"
        if self.classifier is not None:
            unversioned += f":{self.packaging}:{self.classifier}"
        elif self.packaging != "jar":
            unversioned += f":{self.packaging}"

        version_suffix = ""
        if versioned:
            version_suffix = f":{self.version}"
        return f"{unversioned}{version_suffix}"

    def __str__(self) -> str:
        return self.to_coord_str()

    @property
    def handler(self) -> ArtifactHandler:
        return ARTIFACT_HANDLERS.get(self.packaging) or ArtifactHandler(self.packaging)

    @property
    def extension(self) -> str:
        return self.handler.extension

    @property
    def effective_classifier(self) -> str | None:
        """The explicit classifier, else the one implied by the packaging (e.g. `test-jar`)."""
        return self.classifier or self.handler.classifier

    @property
    def is_snapshot(self) -> bool:
        return self.version.endswith(f"-{SNAPSHOT}") or self.version == SNAPSHOT

    def with_version(self, version: str) -> ArtifactCoordinate:
        return replace(self, version=version)

    def pom_coordinate(self) -> ArtifactCoordinate:
        """The coordinate of this artifact's project descriptor."""
        return ArtifactCoordinate(self.group, self.artifact, self.version, packaging="pom")

    def artifact_filename(self, file_version: str | None = None) -> str:
        """The canonical Maven file name, e.g. `core-1.0-tests.jar`.

        :param file_version: overrides the version used in the file name; snapshots are published
          under a timestamped version inside their `-SNAPSHOT` directory.
        """
        classifier = self.effective_classifier
        classifier_suffix = f"-{classifier}" if classifier else ""
        return f"{self.artifact}-{file_version or self.version}{classifier_suffix}.{self.extension}"

    def version_directory(self) -> PurePosixPath:
        return PurePosixPath(*self.group.split("."), self.artifact, self.version)

    def repository_path(self, file_version: str | None = None) -> PurePosixPath:
        """The path of this artifact relative to a Maven-layout repository root."""
        return self.version_directory() / self.artifact_filename(file_version)

    def metadata_directory(self) -> PurePosixPath:
        """The directory holding the artifact-level `maven-metadata.xml` (the version listing)."""
        return PurePosixPath(*self.group.split("."), self.artifact)


@dataclass(frozen=True)
class DependencyEdge:
    """A dependency declared by an artifact's descriptor.

    The coordinate's version is the declared version constraint after interpolation: it may be a
    plain version, a range such as `[1.0,2.0)`, or a meta version like `RELEASE`.
    """

    coordinate: ArtifactCoordinate
    scope: str = "compile"
    optional: bool = False


@dataclass(frozen=True)
class ResolvedArtifact:
    """An artifact located by a repository resolver.

    `coordinate` is the coordinate as it was requested; `resolved_version` is the concrete version
    the request was resolved to, which differs when the request named a range.
    """

    coordinate: ArtifactCoordinate
    file: Path | None
    resolved: bool
    resolved_version: str

    @property
    def file_name(self) -> str | None:
        return self.file.name if self.file is not None else None
