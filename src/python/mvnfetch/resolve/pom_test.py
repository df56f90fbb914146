# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

from textwrap import dedent

import pytest

from mvnfetch.base.exceptions import DescriptorError
from mvnfetch.resolve.context import ResolutionContext
from mvnfetch.resolve.coordinate import ArtifactCoordinate, DependencyEdge
from mvnfetch.resolve.pom import Pom, PomModelBuilder
from mvnfetch.testutil.maven_repo import dependency_xml, pom_xml

core = ArtifactCoordinate("org.x", "core", "1.0")
parent = ArtifactCoordinate("org.x", "parent", "3", packaging="pom")
bom = ArtifactCoordinate("org.x", "bom", "2", packaging="pom")


def builder(poms: dict[ArtifactCoordinate, str], **context_kwargs) -> PomModelBuilder:
    def load(pom_coordinate: ArtifactCoordinate) -> Pom:
        try:
            xml = poms[pom_coordinate]
        except KeyError:
            raise DescriptorError(f"No POM for {pom_coordinate}", pom_coordinate)
        return Pom.parse(xml.encode(), f"{pom_coordinate.to_coord_str()}.pom")

    return PomModelBuilder(load, ResolutionContext(**context_kwargs))


def coords(edges: tuple[DependencyEdge, ...]) -> list[str]:
    return [edge.coordinate.to_coord_str() for edge in edges]


def test_parse_without_namespace() -> None:
    pom = Pom.parse(
        dedent(
            """
            <project>
              <parent>
                <groupId>org.x</groupId><artifactId>parent</artifactId><version>3</version>
              </parent>
              <artifactId>core</artifactId>
              <dependencies>
                <dependency>
                  <groupId>org.x</groupId><artifactId>util</artifactId><version>1.0</version>
                  <type>test-jar</type><scope>test</scope><optional>true</optional>
                </dependency>
              </dependencies>
            </project>
            """
        ).encode(),
        "core.pom",
    )
    assert pom.group is None
    assert "org.x" == pom.effective_group
    assert "3" == pom.effective_version
    assert parent == pom.parent
    (dep,) = pom.dependencies
    assert ("org.x", "util", "1.0", "test-jar", "test") == (
        dep.group,
        dep.artifact,
        dep.version,
        dep.packaging,
        dep.scope,
    )
    assert dep.is_optional


@pytest.mark.parametrize(
    "content, message",
    [
        (b"<project", "Error parsing POM"),
        (b"<metadata/>", "Unexpected root tag"),
        (b"<project><groupId>g</groupId></project>", "Missing element <artifactId>"),
    ],
)
def test_parse_errors(content: bytes, message: str) -> None:
    with pytest.raises(DescriptorError, match=message):
        Pom.parse(content, "bad.pom")


def test_direct_dependencies_in_order() -> None:
    poms = {
        core.pom_coordinate(): pom_xml(
            core,
            dependencies=[
                "org.x:util:1.0",
                dependency_xml("org.x:testkit:1.0", scope="test"),
                dependency_xml("org.x:extra:1.0", optional=True),
                dependency_xml("org.x:api:2.0", scope="runtime"),
            ],
        )
    }
    edges = builder(poms).build(core).dependency_edges()
    assert ["org.x:util:1.0", "org.x:testkit:1.0", "org.x:extra:1.0", "org.x:api:2.0"] == coords(
        edges
    )
    assert ["compile", "test", "compile", "runtime"] == [edge.scope for edge in edges]
    assert [False, False, True, False] == [edge.optional for edge in edges]


def test_parent_inheritance_and_interpolation() -> None:
    poms = {
        parent: pom_xml(
            parent,
            properties={"util.version": "1.2", "shared.version": "${project.version}"},
            dependencies=["org.x:logging:${shared.version}"],
            dependency_management=[dependency_xml("org.x:api:4.0", scope="runtime")],
        ),
        core.pom_coordinate(): pom_xml(
            ArtifactCoordinate("org.x", "core", "${project.parent.version}.0"),
            parent=parent,
            dependencies=[
                "org.x:util:${util.version}",
                "org.x:sibling:${project.version}",
                dependency_xml("org.x:api:x", version=""),
            ],
        ),
    }
    effective = builder(poms).build(core)
    assert "3.0" == effective.version
    assert [
        "org.x:logging:3.0",
        "org.x:util:1.2",
        "org.x:sibling:3.0",
        "org.x:api:4.0",
    ] == coords(effective.dependency_edges())
    assert "runtime" == effective.dependency_edges()[-1].scope


def test_user_properties_win_over_pom_properties() -> None:
    poms = {
        core.pom_coordinate(): pom_xml(
            core, properties={"util.version": "1.0"}, dependencies=["org.x:util:${util.version}"]
        )
    }
    edges = builder(poms, user_properties={"util.version": "9.9"}).build(core).dependency_edges()
    assert ["org.x:util:9.9"] == coords(edges)


def test_unknown_expressions_are_left_verbatim() -> None:
    poms = {core.pom_coordinate(): pom_xml(core, dependencies=["org.x:util:${nope}"])}
    assert ["org.x:util:${nope}"] == coords(builder(poms).build(core).dependency_edges())


def test_import_scoped_bom() -> None:
    poms = {
        bom: pom_xml(bom, dependency_management=["org.x:util:5.0", "org.x:api:6.0"]),
        core.pom_coordinate(): pom_xml(
            core,
            dependency_management=[
                "org.x:api:7.0",
                dependency_xml(bom, scope="import"),
            ],
            dependencies=[
                dependency_xml("org.x:util:x", version=""),
                dependency_xml("org.x:api:x", version=""),
            ],
        ),
    }
    edges = builder(poms).build(core).dependency_edges()
    # Locally managed versions take precedence over imported ones.
    assert ["org.x:util:5.0", "org.x:api:7.0"] == coords(edges)


def test_missing_version_is_an_error() -> None:
    poms = {
        core.pom_coordinate(): pom_xml(
            core, dependencies=[dependency_xml("org.x:util:x", version="")]
        )
    }
    with pytest.raises(DescriptorError, match="'dependencies.dependency.version' for org.x:util"):
        builder(poms).build(core)


def test_parent_cycle() -> None:
    poms = {
        parent: pom_xml(parent, parent=core.pom_coordinate()),
        core.pom_coordinate(): pom_xml(core, parent=parent),
    }
    with pytest.raises(DescriptorError, match="form a cycle"):
        builder(poms).build(core)


def test_missing_parent() -> None:
    poms = {core.pom_coordinate(): pom_xml(core, parent=parent)}
    with pytest.raises(DescriptorError, match="No POM for org.x:parent:pom:3"):
        builder(poms).build(core)


PROFILES = """
<profiles>
  <profile>
    <id>default</id>
    <activation><activeByDefault>true</activeByDefault></activation>
    <dependencies>{default}</dependencies>
  </profile>
  <profile>
    <id>fast</id>
    <activation><property><name>flavor</name><value>fast</value></property></activation>
    <properties><util.version>2.0</util.version></properties>
    <dependencies>{fast}</dependencies>
  </profile>
  <profile>
    <id>ci</id>
    <dependencies>{ci}</dependencies>
  </profile>
</profiles>
""".format(
    default=dependency_xml("org.x:default-dep:1.0"),
    fast=dependency_xml("org.x:util:${util.version}"),
    ci=dependency_xml("org.x:ci-dep:1.0"),
)


@pytest.mark.parametrize(
    "context_kwargs, expected",
    [
        ({}, ["org.x:default-dep:1.0"]),
        ({"user_properties": {"flavor": "fast"}}, ["org.x:util:2.0"]),
        ({"user_properties": {"flavor": "slow"}}, ["org.x:default-dep:1.0"]),
        ({"active_profiles": ("ci",)}, ["org.x:ci-dep:1.0"]),
        (
            {"active_profiles": ("ci",), "user_properties": {"flavor": "fast"}},
            ["org.x:util:2.0", "org.x:ci-dep:1.0"],
        ),
        ({"inactive_profiles": ("default",)}, []),
    ],
)
def test_profiles(context_kwargs: dict, expected: list[str]) -> None:
    poms = {core.pom_coordinate(): pom_xml(core, extra=PROFILES)}
    assert expected == coords(builder(poms, **context_kwargs).build(core).dependency_edges())
