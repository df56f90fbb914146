# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from mvnfetch.base.exceptions import (
    ArtifactNotFoundError,
    DescriptorError,
    LocalRepositoryError,
    RepositoryNetworkError,
    ResolutionError,
)
from mvnfetch.net.fetcher import Fetcher
from mvnfetch.resolve.context import ChecksumPolicy, RemoteRepository, ResolutionContext
from mvnfetch.resolve.coordinate import ArtifactCoordinate, DependencyEdge, ResolvedArtifact
from mvnfetch.resolve.pom import Pom, PomModelBuilder
from mvnfetch.resolve.repository import RepositoryResolver
from mvnfetch.resolve.version import MavenVersion, VersionRange
from mvnfetch.util.dirutil import read_file, safe_concurrent_creation
from mvnfetch.util.strutil import bullet_list

logger = logging.getLogger(__name__)

METADATA_FILENAME = "maven-metadata.xml"
_META_VERSIONS = ("LATEST", "RELEASE")


@dataclass(frozen=True)
class ArtifactMetadata:
    """The artifact-level `maven-metadata.xml`: which versions a repository publishes."""

    versions: tuple[str, ...] = ()
    latest: str | None = None
    release: str | None = None

    @classmethod
    def parse(cls, content: bytes, source: str) -> ArtifactMetadata:
        versioning = _parse_metadata(content, source).find("versioning")
        if versioning is None:
            return cls()
        return cls(
            versions=tuple(
                v.text.strip() for v in versioning.findall("versions/version") if v.text
            ),
            latest=_text(versioning, "latest"),
            release=_text(versioning, "release"),
        )


@dataclass(frozen=True)
class SnapshotMetadata:
    """The version-level `maven-metadata.xml` of a `-SNAPSHOT` version."""

    timestamp: str | None = None
    build_number: str | None = None
    # (extension, classifier) -> timestamped version.
    snapshot_versions: tuple[tuple[str, str | None, str], ...] = ()

    @classmethod
    def parse(cls, content: bytes, source: str) -> SnapshotMetadata:
        versioning = _parse_metadata(content, source).find("versioning")
        if versioning is None:
            return cls()
        return cls(
            timestamp=_text(versioning, "snapshot/timestamp"),
            build_number=_text(versioning, "snapshot/buildNumber"),
            snapshot_versions=tuple(
                (
                    _text(element, "extension") or "jar",
                    _text(element, "classifier"),
                    _text(element, "value") or "",
                )
                for element in versioning.findall("snapshotVersions/snapshotVersion")
            ),
        )

    def file_version(self, coordinate: ArtifactCoordinate) -> str | None:
        """The timestamped version the given snapshot artifact is published under, if known."""
        for extension, classifier, value in self.snapshot_versions:
            if (
                value
                and extension == coordinate.extension
                and classifier == coordinate.effective_classifier
            ):
                return value
        if self.timestamp and self.build_number:
            base = coordinate.version[: -len("SNAPSHOT")]
            return f"{base}{self.timestamp}-{self.build_number}"
        return None


def _parse_metadata(content: bytes, source: str) -> ET.Element:
    try:
        return ET.fromstring(content)
    except ET.ParseError as e:
        raise RepositoryNetworkError(f"Error parsing repository metadata at {source}: {e}")


def _text(element: ET.Element, path: str) -> str | None:
    found = element.find(path)
    if found is None or found.text is None:
        return None
    return found.text.strip() or None


class MavenRepositoryResolver(RepositoryResolver):
    """Resolves artifacts against Maven-layout repositories.

    Files are looked up in the local repository first and otherwise downloaded from each remote
    repository in turn into the local repository. Descriptors and metadata are cached for the
    lifetime of the resolver, which is meant to be one invocation.
    """

    def __init__(self, context: ResolutionContext, fetcher: Fetcher | None = None) -> None:
        self._context = context
        self._fetcher = fetcher or Fetcher()
        self._model_builder = PomModelBuilder(self._load_pom, context)
        self._poms: dict[ArtifactCoordinate, Pom] = {}
        self._artifact_metadata: dict[tuple[str, str], list[ArtifactMetadata]] = {}

    @property
    def context(self) -> ResolutionContext:
        return self._context

    def resolve_binary(self, coordinate: ArtifactCoordinate) -> ResolvedArtifact:
        version = self.resolve_version(coordinate)
        path = self._fetch_artifact(coordinate.with_version(version))
        logger.debug(f"Resolved {coordinate.to_coord_str()} to {path}")
        return ResolvedArtifact(
            coordinate=coordinate, file=path, resolved=True, resolved_version=version
        )

    def fetch_dependencies(self, coordinate: ArtifactCoordinate) -> tuple[DependencyEdge, ...]:
        try:
            version = self.resolve_version(coordinate)
            effective = self._model_builder.build(coordinate.with_version(version))
        except DescriptorError:
            raise
        except ResolutionError as e:
            raise DescriptorError(
                f"Failed to build the descriptor of {coordinate.to_coord_str()}: {e}", coordinate
            ) from e

        edges = []
        for edge in effective.dependency_edges():
            if edge.scope in self._context.excluded_scopes:
                logger.debug(f"Skipping {edge.scope} scoped {edge.coordinate.to_coord_str()}")
            elif edge.optional and not self._context.include_optional:
                logger.debug(f"Skipping optional {edge.coordinate.to_coord_str()}")
            else:
                edges.append(edge)
        return tuple(edges)

    def resolve_version(self, coordinate: ArtifactCoordinate) -> str:
        """Turns the requested version (plain, range or meta version) into a concrete one."""
        requested = coordinate.version
        if requested in _META_VERSIONS:
            return self._resolve_meta_version(coordinate)

        version_range = VersionRange.parse(requested)
        if not version_range.is_range:
            return requested

        available = self._available_versions(coordinate)
        selected = version_range.select(available)
        if selected is None:
            raise ArtifactNotFoundError(
                f"No version of {coordinate.to_coord_str(versioned=False)} matches "
                f"{requested}. Available versions: {', '.join(available) or 'none'}",
                coordinate,
            )
        logger.debug(f"Selected {selected} for {coordinate.to_coord_str()}")
        return selected

    def _resolve_meta_version(self, coordinate: ArtifactCoordinate) -> str:
        metadatas = self._metadata_for(coordinate)
        if coordinate.version == "LATEST":
            candidates = [m.latest for m in metadatas if m.latest]
        else:
            candidates = [m.release for m in metadatas if m.release]
        if not candidates:
            candidates = [
                v
                for v in self._available_versions(coordinate)
                if coordinate.version == "LATEST" or not MavenVersion(v).is_snapshot
            ]
        if not candidates:
            raise ArtifactNotFoundError(
                f"Could not determine the {coordinate.version} version of "
                f"{coordinate.to_coord_str(versioned=False)}.",
                coordinate,
            )
        return max(candidates, key=MavenVersion)

    def _available_versions(self, coordinate: ArtifactCoordinate) -> list[str]:
        versions = {v for metadata in self._metadata_for(coordinate) for v in metadata.versions}
        versions.update(self._local_versions(coordinate))
        return sorted(versions, key=MavenVersion)

    def _local_versions(self, coordinate: ArtifactCoordinate) -> set[str]:
        artifact_dir = self._context.local_repository / coordinate.metadata_directory()
        if not artifact_dir.is_dir():
            return set()
        return {
            entry.name
            for entry in artifact_dir.iterdir()
            if (self._local_path(coordinate.with_version(entry.name))).is_file()
        }

    def _metadata_for(self, coordinate: ArtifactCoordinate) -> list[ArtifactMetadata]:
        key = (coordinate.group, coordinate.artifact)
        if key not in self._artifact_metadata:
            relpath = coordinate.metadata_directory() / METADATA_FILENAME
            metadatas = []
            for repository in self._remotes():
                content = self._fetch_optional(repository, relpath)
                if content is not None:
                    metadatas.append(
                        ArtifactMetadata.parse(content, repository.url_for(str(relpath)))
                    )
            self._artifact_metadata[key] = metadatas
        return self._artifact_metadata[key]

    def _remotes(self) -> tuple[RemoteRepository, ...]:
        return () if self._context.offline else self._context.remote_repositories

    def _local_path(self, coordinate: ArtifactCoordinate) -> Path:
        return self._context.local_repository / coordinate.repository_path()

    def _fetch_artifact(self, coordinate: ArtifactCoordinate) -> Path:
        local_path = self._local_path(coordinate)
        if local_path.is_file():
            return local_path
        if self._context.offline:
            raise ArtifactNotFoundError(
                f"{coordinate.to_coord_str()} is not in the local repository "
                f"{self._context.local_repository} and resolution is offline.",
                coordinate,
            )

        failures = []
        for repository in self._remotes():
            url = repository.url_for(str(self._remote_path(repository, coordinate)))
            try:
                self._download(url, local_path)
                logger.info(f"Downloaded {coordinate.to_coord_str()} from {repository.id}")
                return local_path
            except Fetcher.PermanentError as e:
                if e.not_found:
                    logger.debug(f"{coordinate.to_coord_str()} not found at {url}")
                    continue
                failures.append(f"{repository.id}: {e}")
            except Fetcher.Error as e:
                failures.append(f"{repository.id}: {e}")
            except OSError as e:
                raise LocalRepositoryError(
                    f"Could not store {coordinate.to_coord_str()} at {local_path}: {e}", coordinate
                ) from e

        if failures:
            raise RepositoryNetworkError(
                f"Could not download {coordinate.to_coord_str()}:\n\n{bullet_list(failures)}",
                coordinate,
            )
        searched = bullet_list(f"{r.id} ({r.url})" for r in self._remotes())
        raise ArtifactNotFoundError(
            f"Could not find artifact {coordinate.to_coord_str()} in:\n\n{searched}", coordinate
        )

    def _remote_path(
        self, repository: RemoteRepository, coordinate: ArtifactCoordinate
    ) -> PurePosixPath:
        if not coordinate.is_snapshot:
            return coordinate.repository_path()
        relpath = coordinate.version_directory() / METADATA_FILENAME
        content = self._fetch_optional(repository, relpath)
        if content is None:
            return coordinate.repository_path()
        metadata = SnapshotMetadata.parse(content, repository.url_for(str(relpath)))
        return coordinate.repository_path(file_version=metadata.file_version(coordinate))

    def _fetch_optional(self, repository: RemoteRepository, relpath: PurePosixPath) -> bytes | None:
        """Fetches a small repository file, returning None if the repository does not have it."""
        url = repository.url_for(str(relpath))
        for attempt in range(self._context.retries + 1):
            try:
                return self._fetcher.fetch_bytes(url, timeout_secs=self._context.timeout_secs)
            except Fetcher.PermanentError as e:
                if e.not_found:
                    return None
                raise RepositoryNetworkError(f"Failed to fetch {url}: {e}")
            except Fetcher.TransientError as e:
                if attempt == self._context.retries:
                    raise RepositoryNetworkError(f"Failed to fetch {url}: {e}")
                logger.warning(f"Retrying {url} after: {e}")
        return None

    def _download(self, url: str, local_path: Path) -> None:
        for attempt in range(self._context.retries + 1):
            try:
                with safe_concurrent_creation(str(local_path)) as tmp_path:
                    checksum = Fetcher.ChecksumListener()
                    self._fetcher.download(
                        url, tmp_path, listener=checksum, timeout_secs=self._context.timeout_secs
                    )
                    self._verify_checksum(url, checksum.checksum)
                return
            except Fetcher.TransientError as e:
                if attempt == self._context.retries:
                    raise
                logger.warning(f"Retrying {url} after: {e}")

    def _verify_checksum(self, url: str, actual: str) -> None:
        policy = self._context.checksum_policy
        if policy is ChecksumPolicy.IGNORE:
            return
        checksum_url = f"{url}.sha1"
        try:
            content = self._fetcher.fetch_bytes(
                checksum_url, timeout_secs=self._context.timeout_secs
            )
        except Fetcher.PermanentError as e:
            if not e.not_found:
                raise
            logger.debug(f"No checksum published at {checksum_url}")
            return

        tokens = content.decode("utf-8", errors="replace").split()
        expected = tokens[0].lower() if tokens else ""
        if expected == actual:
            return
        message = f"Checksum mismatch for {url}: expected {expected or '<empty>'}, got {actual}"
        if policy is ChecksumPolicy.FAIL:
            raise Fetcher.PermanentError(message)
        logger.warning(message)

    def _load_pom(self, pom_coordinate: ArtifactCoordinate) -> Pom:
        if pom_coordinate not in self._poms:
            resolved = self.resolve_binary(pom_coordinate)
            assert resolved.file is not None
            try:
                content = read_file(resolved.file, binary_mode=True)
            except OSError as e:
                raise DescriptorError(f"Problem reading POM {resolved.file}: {e!r}", pom_coordinate)
            self._poms[pom_coordinate] = Pom.parse(content, os.fspath(resolved.file))
        return self._poms[pom_coordinate]
