# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

import pytest

from mvnfetch.base.exceptions import ArtifactNotFoundError, DescriptorError, ResolutionError
from mvnfetch.resolve.closure import ClosureResolver
from mvnfetch.resolve.coordinate import ArtifactCoordinate, DependencyEdge, ResolvedArtifact
from mvnfetch.resolve.repository import RepositoryResolver

coord1 = ArtifactCoordinate("test", "art1", "1.0.0")
coord2 = ArtifactCoordinate("test", "art2", "1.0.0")
coord3 = ArtifactCoordinate("test", "art3", "1.0.0")
coord4 = ArtifactCoordinate("test", "art4", "1.0.0")
coord5 = ArtifactCoordinate("test", "art5", "1.0.0")


class GraphResolver(RepositoryResolver):
    """Resolves against an in-memory dependency graph, recording every call."""

    def __init__(
        self,
        graph: Mapping[ArtifactCoordinate, Sequence[ArtifactCoordinate]],
        missing: Sequence[ArtifactCoordinate] = (),
        broken_descriptors: Sequence[ArtifactCoordinate] = (),
    ) -> None:
        self.graph = graph
        self.missing = set(missing)
        self.broken_descriptors = set(broken_descriptors)
        self.binary_calls: list[ArtifactCoordinate] = []
        self.dependency_calls: list[ArtifactCoordinate] = []

    def resolve_binary(self, coordinate: ArtifactCoordinate) -> ResolvedArtifact:
        self.binary_calls.append(coordinate)
        if coordinate in self.missing:
            raise ArtifactNotFoundError(f"Could not find {coordinate}", coordinate)
        return ResolvedArtifact(
            coordinate=coordinate,
            file=Path(coordinate.artifact_filename()),
            resolved=True,
            resolved_version=coordinate.version,
        )

    def fetch_dependencies(self, coordinate: ArtifactCoordinate) -> tuple[DependencyEdge, ...]:
        self.dependency_calls.append(coordinate)
        if coordinate in self.broken_descriptors:
            raise DescriptorError(f"Broken POM for {coordinate}", coordinate)
        return tuple(DependencyEdge(dep) for dep in self.graph.get(coordinate, ()))


def chain(length: int) -> list[ArtifactCoordinate]:
    return [ArtifactCoordinate("test", f"link{i}", "1") for i in range(length + 1)]


def test_depth_zero_is_root_only() -> None:
    resolver = GraphResolver({coord1: [coord2, coord3]})
    result = ClosureResolver(resolver).resolve(coord1, 0)
    assert (coord1,) == result.coordinates
    assert [] == resolver.dependency_calls


@pytest.mark.parametrize("depth", [0, 1, 5])
def test_leaf_root(depth: int) -> None:
    result = ClosureResolver(GraphResolver({})).resolve(coord1, depth)
    assert (coord1,) == result.coordinates


@pytest.mark.parametrize("depth", [0, 1, 2, 3, 4, 10])
def test_chain_depth_bound(depth: int) -> None:
    links = chain(4)
    graph = {links[i]: [links[i + 1]] for i in range(len(links) - 1)}
    result = ClosureResolver(GraphResolver(graph)).resolve(links[0], depth)
    assert tuple(links[: min(depth + 1, len(links))]) == result.coordinates


def test_diamond_dedups() -> None:
    graph = {coord1: [coord2, coord3], coord2: [coord4], coord3: [coord4]}
    resolver = GraphResolver(graph)
    result = ClosureResolver(resolver).resolve(coord1, 2)
    assert (coord1, coord2, coord4, coord3) == result.coordinates
    assert 1 == resolver.binary_calls.count(coord4)
    assert 4 == len(result)


def test_cycle_terminates() -> None:
    graph = {coord1: [coord2], coord2: [coord1]}
    resolver = GraphResolver(graph)
    result = ClosureResolver(resolver).resolve(coord1, 50)
    assert (coord1, coord2) == result.coordinates
    assert 1 == resolver.dependency_calls.count(coord1)


def test_shallow_visit_does_not_hide_deeper_dependencies() -> None:
    # coord3 is first reached with depth 0 remaining (via coord2), then with depth 1 (directly).
    graph = {coord1: [coord2, coord3], coord2: [coord3], coord3: [coord5]}
    result = ClosureResolver(GraphResolver(graph)).resolve(coord1, 2)
    assert {coord1, coord2, coord3, coord5} == set(result.coordinates)


def test_first_resolution_wins() -> None:
    result = ClosureResolver(GraphResolver({coord1: [coord2, coord2]})).resolve(coord1, 1)
    assert (coord1, coord2) == result.coordinates
    artifact = result.get(coord2)
    assert artifact is not None and Path("art2-1.0.0.jar") == artifact.file
    assert coord2 in result
    assert coord3 not in result
    assert [coord1, coord2] == [artifact.coordinate for artifact in result]


def test_missing_binary_names_path() -> None:
    graph = {coord1: [coord2], coord2: [coord3]}
    with pytest.raises(ArtifactNotFoundError) as exc:
        ClosureResolver(GraphResolver(graph, missing=[coord3])).resolve(coord1, 2)
    error = exc.value
    assert coord3 == error.coordinate
    assert (coord1, coord2, coord3) == error.path
    assert "test:art1:1.0.0 -> test:art2:1.0.0 -> test:art3:1.0.0" in str(error)


def test_missing_binary_beyond_depth_is_not_touched() -> None:
    graph = {coord1: [coord2], coord2: [coord3]}
    result = ClosureResolver(GraphResolver(graph, missing=[coord3])).resolve(coord1, 1)
    assert (coord1, coord2) == result.coordinates


def test_descriptor_failure() -> None:
    graph = {coord1: [coord2]}
    with pytest.raises(DescriptorError) as exc:
        ClosureResolver(GraphResolver(graph, broken_descriptors=[coord2])).resolve(coord1, 2)
    assert coord2 == exc.value.coordinate
    assert isinstance(exc.value, ResolutionError)


@pytest.mark.parametrize("depth", [-1, 1.5, True, "2"])
def test_invalid_depth(depth) -> None:
    with pytest.raises(ValueError):
        ClosureResolver(GraphResolver({})).resolve(coord1, depth)
