# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Depth-bounded transitive resolution of an artifact's dependency closure."""

from __future__ import annotations

import logging
from typing import Iterator

from mvnfetch.base.exceptions import ResolutionError
from mvnfetch.resolve.coordinate import ArtifactCoordinate, DependencyEdge, ResolvedArtifact
from mvnfetch.resolve.repository import RepositoryResolver
from mvnfetch.util.strutil import pluralize

logger = logging.getLogger(__name__)


class ClosureResult:
    """The resolved artifacts of a closure, keyed by requested coordinate in discovery order.

    The first resolution of a coordinate wins; later duplicates are ignored.
    """

    def __init__(self) -> None:
        self._artifacts: dict[ArtifactCoordinate, ResolvedArtifact] = {}

    def add(self, artifact: ResolvedArtifact) -> bool:
        """Adds the artifact unless its coordinate is already present; returns whether it was."""
        if artifact.coordinate in self._artifacts:
            return False
        self._artifacts[artifact.coordinate] = artifact
        return True

    @property
    def artifacts(self) -> tuple[ResolvedArtifact, ...]:
        return tuple(self._artifacts.values())

    @property
    def coordinates(self) -> tuple[ArtifactCoordinate, ...]:
        return tuple(self._artifacts)

    def get(self, coordinate: ArtifactCoordinate) -> ResolvedArtifact | None:
        return self._artifacts.get(coordinate)

    def __contains__(self, coordinate: object) -> bool:
        return coordinate in self._artifacts

    def __iter__(self) -> Iterator[ResolvedArtifact]:
        return iter(self._artifacts.values())

    def __len__(self) -> int:
        return len(self._artifacts)

    def __repr__(self) -> str:
        return f"ClosureResult({', '.join(c.to_coord_str() for c in self._artifacts)})"


class _Traversal:
    """One closure computation, with its per-run caches."""

    def __init__(self, resolver: RepositoryResolver) -> None:
        self._resolver = resolver
        self._binaries: dict[ArtifactCoordinate, ResolvedArtifact] = {}
        self._dependencies: dict[ArtifactCoordinate, tuple[DependencyEdge, ...]] = {}
        # Coordinate -> the largest remaining depth it has been expanded with.
        self._expanded: dict[ArtifactCoordinate, int] = {}
        self.result = ClosureResult()

    def visit(
        self, coordinate: ArtifactCoordinate, depth: int, path: tuple[ArtifactCoordinate, ...]
    ) -> None:
        path = path + (coordinate,)
        self.result.add(self._binary(coordinate, path))
        if depth == 0:
            return
        if self._expanded.get(coordinate, -1) >= depth:
            return
        self._expanded[coordinate] = depth

        edges = self._edges(coordinate, path)
        logger.debug(
            f"{coordinate.to_coord_str()} has {pluralize(len(edges), 'dependency')}, "
            f"{depth - 1} more {'level' if depth == 2 else 'levels'} to go"
        )
        for edge in edges:
            self.visit(edge.coordinate, depth - 1, path)

    def _binary(
        self, coordinate: ArtifactCoordinate, path: tuple[ArtifactCoordinate, ...]
    ) -> ResolvedArtifact:
        if coordinate not in self._binaries:
            try:
                artifact = self._resolver.resolve_binary(coordinate)
            except ResolutionError as e:
                raise _with_path(e, coordinate, path) from e
            logger.debug(f"Resolved {coordinate.to_coord_str()} to {artifact.file}")
            self._binaries[coordinate] = artifact
        return self._binaries[coordinate]

    def _edges(
        self, coordinate: ArtifactCoordinate, path: tuple[ArtifactCoordinate, ...]
    ) -> tuple[DependencyEdge, ...]:
        if coordinate not in self._dependencies:
            try:
                edges = self._resolver.fetch_dependencies(coordinate)
            except ResolutionError as e:
                raise _with_path(e, coordinate, path) from e
            self._dependencies[coordinate] = tuple(edges)
        return self._dependencies[coordinate]


def _with_path(
    error: ResolutionError, coordinate: ArtifactCoordinate, path: tuple[ArtifactCoordinate, ...]
) -> ResolutionError:
    via = " -> ".join(c.to_coord_str() for c in path)
    wrapped = type(error)(
        f"Failed to resolve {coordinate.to_coord_str()} (path: {via}): {error}", coordinate
    )
    wrapped.path = path
    return wrapped


class ClosureResolver:
    """Computes the set of artifacts reachable from a root within a number of dependency levels.

    Depth 0 is the root alone, depth 1 adds its direct dependencies, and so on. Cycles terminate
    because the remaining depth strictly decreases along every path.
    """

    def __init__(self, resolver: RepositoryResolver) -> None:
        self._resolver = resolver

    def resolve(self, root: ArtifactCoordinate, max_depth: int) -> ClosureResult:
        """Resolves `root` and its dependencies up to `max_depth` levels deep.

        :raises: ValueError if `max_depth` is not a non-negative int.
        :raises: :class:`mvnfetch.base.exceptions.ResolutionError` if any member of the closure
          fails to resolve; no partial closure is returned.
        """
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise ValueError(f"max_depth must be a non-negative integer, given {max_depth!r}")

        traversal = _Traversal(self._resolver)
        traversal.visit(root, max_depth, path=())
        result = traversal.result
        logger.debug(
            f"Resolved {pluralize(len(result), 'artifact')} within {max_depth} "
            f"{'level' if max_depth == 1 else 'levels'} of {root.to_coord_str()}"
        )
        return result
