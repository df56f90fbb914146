# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""An on-disk Maven-layout repository for tests, addressable with a `file://` url."""

from __future__ import annotations

import hashlib
import io
from pathlib import Path
from typing import Iterable, Mapping
from zipfile import ZIP_DEFLATED

from mvnfetch.resolve.coordinate import ArtifactCoordinate
from mvnfetch.util.contextutil import open_zip
from mvnfetch.util.dirutil import safe_file_dump

_POM_HEADER = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
"""


def _coordinate(coord: str | ArtifactCoordinate) -> ArtifactCoordinate:
    if isinstance(coord, ArtifactCoordinate):
        return coord
    return ArtifactCoordinate.from_coord_str(coord)


def dependency_xml(
    coord: str | ArtifactCoordinate,
    scope: str | None = None,
    optional: bool = False,
    version: str | None = None,
) -> str:
    """A `<dependency>` element; pass `version=""` to leave the version to management."""
    coordinate = _coordinate(coord)
    version = coordinate.version if version is None else version
    parts = [
        f"<groupId>{coordinate.group}</groupId>",
        f"<artifactId>{coordinate.artifact}</artifactId>",
    ]
    if version:
        parts.append(f"<version>{version}</version>")
    if coordinate.packaging != "jar":
        parts.append(f"<type>{coordinate.packaging}</type>")
    if coordinate.classifier:
        parts.append(f"<classifier>{coordinate.classifier}</classifier>")
    if scope:
        parts.append(f"<scope>{scope}</scope>")
    if optional:
        parts.append("<optional>true</optional>")
    return f"<dependency>{''.join(parts)}</dependency>"


def pom_xml(
    coord: str | ArtifactCoordinate,
    dependencies: Iterable[str | ArtifactCoordinate] = (),
    parent: str | ArtifactCoordinate | None = None,
    properties: Mapping[str, str] | None = None,
    dependency_management: Iterable[str | ArtifactCoordinate] = (),
    extra: str = "",
) -> str:
    """Renders a POM. Dependencies are coordinates or pre-rendered `dependency_xml` strings."""
    coordinate = _coordinate(coord)

    def render(deps: Iterable[str | ArtifactCoordinate]) -> str:
        return "".join(
            dep if isinstance(dep, str) and dep.startswith("<") else dependency_xml(dep)
            for dep in deps
        )

    body = [
        f"<groupId>{coordinate.group}</groupId>",
        f"<artifactId>{coordinate.artifact}</artifactId>",
        f"<version>{coordinate.version}</version>",
    ]
    if parent is not None:
        parent_coordinate = _coordinate(parent)
        body.insert(
            0,
            "<parent>"
            f"<groupId>{parent_coordinate.group}</groupId>"
            f"<artifactId>{parent_coordinate.artifact}</artifactId>"
            f"<version>{parent_coordinate.version}</version>"
            "</parent>",
        )
    if coordinate.packaging == "pom":
        body.append("<packaging>pom</packaging>")
    if properties:
        body.append(
            "<properties>"
            + "".join(f"<{key}>{value}</{key}>" for key, value in properties.items())
            + "</properties>"
        )
    managed = render(dependency_management)
    if managed:
        body.append(
            f"<dependencyManagement><dependencies>{managed}</dependencies></dependencyManagement>"
        )
    declared = render(dependencies)
    if declared:
        body.append(f"<dependencies>{declared}</dependencies>")
    body.append(extra)
    return _POM_HEADER + "\n".join(f"  {line}" for line in body if line) + "\n</project>\n"


def jar_bytes(files: Mapping[str, str]) -> bytes:
    buffer = io.BytesIO()
    with open_zip(buffer, "w", compression=ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


class FakeMavenRepository:
    """Builds a Maven-layout directory tree of artifacts, POMs, checksums and metadata."""

    def __init__(self, root: Path, checksums: bool = True) -> None:
        self.root = Path(root)
        self.checksums = checksums

    @property
    def url(self) -> str:
        return self.root.as_uri()

    def path_of(self, coord: str | ArtifactCoordinate) -> Path:
        return self.root / _coordinate(coord).repository_path()

    def write(self, relpath: str | Path, payload: bytes) -> Path:
        path = self.root / relpath
        safe_file_dump(path, payload, mode="wb", makedirs=True)
        if self.checksums:
            safe_file_dump(f"{path}.sha1", hashlib.sha1(payload).hexdigest(), mode="w")
        return path

    def add_pom(self, coord: str | ArtifactCoordinate, xml: str | None = None, **kwargs) -> Path:
        coordinate = _coordinate(coord)
        xml = xml if xml is not None else pom_xml(coordinate, **kwargs)
        return self.write(coordinate.pom_coordinate().repository_path(), xml.encode())

    def add_artifact(
        self,
        coord: str | ArtifactCoordinate,
        files: Mapping[str, str] | None = None,
        dependencies: Iterable[str | ArtifactCoordinate] = (),
        with_pom: bool = True,
        **pom_kwargs,
    ) -> Path:
        """Adds an archive for `coord` holding `files` (a marker file by default) and its POM."""
        coordinate = _coordinate(coord)
        if files is None:
            files = {
                "META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n",
                f"{coordinate.artifact}.txt": coordinate.to_coord_str(),
            }
        path = self.write(coordinate.repository_path(), jar_bytes(files))
        if with_pom:
            self.add_pom(coordinate, dependencies=dependencies, **pom_kwargs)
        return path

    def add_metadata(
        self,
        coord: str | ArtifactCoordinate,
        versions: Iterable[str],
        latest: str | None = None,
        release: str | None = None,
    ) -> Path:
        """Writes the artifact-level version listing; `coord`'s version is ignored."""
        coordinate = _coordinate(coord)
        listing = "".join(f"<version>{v}</version>" for v in versions)
        extras = ""
        if latest:
            extras += f"<latest>{latest}</latest>"
        if release:
            extras += f"<release>{release}</release>"
        xml = (
            "<metadata>"
            f"<groupId>{coordinate.group}</groupId><artifactId>{coordinate.artifact}</artifactId>"
            f"<versioning>{extras}<versions>{listing}</versions></versioning>"
            "</metadata>"
        )
        return self.write(coordinate.metadata_directory() / "maven-metadata.xml", xml.encode())

    def add_snapshot(
        self, coord: str | ArtifactCoordinate, timestamp: str, build_number: int = 1
    ) -> Path:
        """Publishes a `-SNAPSHOT` artifact under its timestamped name, with version metadata."""
        coordinate = _coordinate(coord)
        file_version = coordinate.version.replace("SNAPSHOT", f"{timestamp}-{build_number}")
        path = self.write(
            coordinate.repository_path(file_version=file_version),
            jar_bytes({f"{coordinate.artifact}.txt": file_version}),
        )
        self.write(
            coordinate.pom_coordinate().repository_path(file_version=file_version),
            pom_xml(coordinate).encode(),
        )
        xml = (
            "<metadata><versioning>"
            f"<snapshot><timestamp>{timestamp}</timestamp><buildNumber>{build_number}</buildNumber>"
            "</snapshot></versioning></metadata>"
        )
        self.write(coordinate.version_directory() / "maven-metadata.xml", xml.encode())
        return path
