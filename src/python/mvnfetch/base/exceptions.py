# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from mvnfetch.util.strutil import bullet_list, pluralize

if TYPE_CHECKING:
    from mvnfetch.resolve.coordinate import ArtifactCoordinate


class MvnFetchException(Exception):
    """Base exception type for mvnfetch."""


class ConfigurationError(MvnFetchException):
    """Indicates an invalid combination of download options, detected before any resolution."""


class ConfigError(ConfigurationError):
    """Indicates a configuration file that could not be read, parsed or validated."""


class ResolutionError(MvnFetchException):
    """Indicates that an artifact, or something in its transitive closure, could not be resolved."""

    def __init__(self, msg: str, coordinate: ArtifactCoordinate | None = None) -> None:
        super().__init__(msg)
        self.coordinate = coordinate
        # The chain of coordinates from the closure root to `coordinate`, when known.
        self.path: tuple[ArtifactCoordinate, ...] = ()


class ArtifactNotFoundError(ResolutionError):
    """The artifact is not present in the local repository or any configured remote."""


class RepositoryNetworkError(ResolutionError):
    """A remote repository could not be reached, or returned an unexpected response."""


class LocalRepositoryError(ResolutionError):
    """A resolved artifact could not be written into the local repository."""


class DescriptorError(ResolutionError):
    """The project descriptor (POM) of an artifact could not be fetched or built."""


class InvalidVersionSpecification(ResolutionError):
    """A version or version range string is malformed."""


class MaterializationError(MvnFetchException):
    """Indicates one or more resolved artifacts could not be placed into the output directory.

    Carries the coordinate of every failed artifact alongside its cause.
    """

    def __init__(self, failures: Sequence[tuple[ArtifactCoordinate, str]]) -> None:
        self.failures = tuple(failures)
        details = bullet_list(f"{coord.to_coord_str()}: {cause}" for coord, cause in self.failures)
        super().__init__(
            f"Failed to materialize {pluralize(len(self.failures), 'artifact')}:\n\n{details}"
        )

    @property
    def coordinates(self) -> tuple[ArtifactCoordinate, ...]:
        return tuple(coord for coord, _ in self.failures)
