# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

from abc import ABC, abstractmethod

from mvnfetch.resolve.coordinate import ArtifactCoordinate, DependencyEdge, ResolvedArtifact


class RepositoryResolver(ABC):
    """Locates artifacts and reads their declared dependencies.

    Implementations talk to a remote package index and a local cache. Version ranges in a
    requested coordinate are resolved to concrete versions by the implementation.
    """

    @abstractmethod
    def resolve_binary(self, coordinate: ArtifactCoordinate) -> ResolvedArtifact:
        """Locates (downloading if needed) the file backing `coordinate`.

        :raises: :class:`mvnfetch.base.exceptions.ArtifactNotFoundError` if no repository has it.
        :raises: :class:`mvnfetch.base.exceptions.RepositoryNetworkError` if a repository could not
          be read.
        """

    @abstractmethod
    def fetch_dependencies(self, coordinate: ArtifactCoordinate) -> tuple[DependencyEdge, ...]:
        """Returns the ordered direct dependencies declared by `coordinate`'s descriptor.

        Building the descriptor does not resolve any dependency transitively.

        :raises: :class:`mvnfetch.base.exceptions.DescriptorError` if the descriptor cannot be
          fetched or built.
        """
