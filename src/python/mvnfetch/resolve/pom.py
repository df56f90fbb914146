# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Reading Maven project descriptors (POMs) and building the effective dependency list.

Only what is needed to enumerate an artifact's direct dependencies is modelled: coordinates,
parent inheritance, properties, profiles, dependencies and dependency management (including
`import`-scoped BOMs).
"""

from __future__ import annotations

import logging
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field, replace
from typing import Callable, Mapping

from mvnfetch.base.exceptions import DescriptorError
from mvnfetch.resolve.context import ResolutionContext
from mvnfetch.resolve.coordinate import ArtifactCoordinate, DependencyEdge

logger = logging.getLogger(__name__)

_EXPRESSION_RE = re.compile(r"\$\{([^}]+)\}")
# Guards against property definitions that refer to each other.
_MAX_INTERPOLATION_PASSES = 32


@dataclass(frozen=True)
class PomDependency:
    """A `<dependency>` element as written, before inheritance, interpolation or management."""

    group: str
    artifact: str
    version: str | None = None
    packaging: str = "jar"
    classifier: str | None = None
    scope: str | None = None
    optional: str | None = None

    @property
    def management_key(self) -> tuple[str, str, str, str | None]:
        return (self.group, self.artifact, self.packaging, self.classifier)

    @property
    def is_optional(self) -> bool:
        return (self.optional or "").strip().lower() == "true"

    def interpolate(self, interpolate: Callable[[str], str]) -> PomDependency:
        def maybe(value: str | None) -> str | None:
            return interpolate(value) if value is not None else None

        return PomDependency(
            group=interpolate(self.group),
            artifact=interpolate(self.artifact),
            version=maybe(self.version),
            packaging=interpolate(self.packaging),
            classifier=maybe(self.classifier),
            scope=maybe(self.scope),
            optional=maybe(self.optional),
        )


@dataclass(frozen=True)
class PomProfile:
    id: str
    active_by_default: bool = False
    activation_property: tuple[str, str | None] | None = None
    properties: Mapping[str, str] = field(default_factory=dict)
    dependencies: tuple[PomDependency, ...] = ()
    dependency_management: tuple[PomDependency, ...] = ()

    def activated_by(self, user_properties: Mapping[str, str]) -> bool:
        if self.activation_property is None:
            return False
        name, value = self.activation_property
        if name.startswith("!"):
            return name[1:] not in user_properties
        if name not in user_properties:
            return False
        if value is None:
            return True
        if value.startswith("!"):
            return user_properties[name] != value[1:]
        return user_properties[name] == value


@dataclass(frozen=True)
class Pom:
    """The raw content of one POM file."""

    source: str
    group: str | None
    artifact: str
    version: str | None
    packaging: str
    parent: ArtifactCoordinate | None
    properties: Mapping[str, str]
    dependencies: tuple[PomDependency, ...]
    dependency_management: tuple[PomDependency, ...]
    profiles: tuple[PomProfile, ...]

    @property
    def effective_group(self) -> str | None:
        return self.group or (self.parent.group if self.parent else None)

    @property
    def effective_version(self) -> str | None:
        return self.version or (self.parent.version if self.parent else None)

    @classmethod
    def parse(cls, content: bytes, source: str) -> Pom:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise DescriptorError(f"Error parsing POM at {source}: {e}")

        match = re.match(r"^(\{.*\})?project$", root.tag)
        if not match:
            raise DescriptorError(f"Unexpected root tag `{root.tag}` in {source}, expected project")
        reader = _ElementReader(match.group(1) or "", source)

        parent = None
        parent_element = reader.child(root, "parent")
        if parent_element is not None:
            parent = ArtifactCoordinate(
                group=reader.required_text(parent_element, "groupId"),
                artifact=reader.required_text(parent_element, "artifactId"),
                version=reader.required_text(parent_element, "version"),
                packaging="pom",
            )

        return cls(
            source=source,
            group=reader.text(root, "groupId"),
            artifact=reader.required_text(root, "artifactId"),
            version=reader.text(root, "version"),
            packaging=reader.text(root, "packaging") or "jar",
            parent=parent,
            properties=reader.properties(root),
            dependencies=reader.dependencies(root),
            dependency_management=reader.dependencies(reader.child(root, "dependencyManagement")),
            profiles=tuple(
                reader.profile(profile)
                for profile in reader.children(reader.child(root, "profiles"), "profile")
            ),
        )


class _ElementReader:
    """Namespace-aware accessors for the direct children of POM elements."""

    def __init__(self, namespace: str, source: str) -> None:
        self._ns = namespace
        self._source = source

    def child(self, parent: ET.Element | None, name: str) -> ET.Element | None:
        if parent is None:
            return None
        return parent.find(f"{self._ns}{name}")

    def children(self, parent: ET.Element | None, name: str) -> list[ET.Element]:
        if parent is None:
            return []
        return parent.findall(f"{self._ns}{name}")

    def text(self, parent: ET.Element | None, name: str) -> str | None:
        element = self.child(parent, name)
        if element is None or element.text is None:
            return None
        return element.text.strip() or None

    def required_text(self, parent: ET.Element, name: str) -> str:
        value = self.text(parent, name)
        if value is None:
            raise DescriptorError(f"Missing element <{name}> in {self._source}")
        return value

    def properties(self, parent: ET.Element | None) -> dict[str, str]:
        properties_element = self.child(parent, "properties")
        if properties_element is None:
            return {}
        return {
            element.tag[len(self._ns) :]: (element.text or "").strip()
            for element in properties_element
            if isinstance(element.tag, str)
        }

    def dependencies(self, parent: ET.Element | None) -> tuple[PomDependency, ...]:
        return tuple(
            PomDependency(
                group=self.required_text(element, "groupId"),
                artifact=self.required_text(element, "artifactId"),
                version=self.text(element, "version"),
                packaging=self.text(element, "type") or "jar",
                classifier=self.text(element, "classifier"),
                scope=self.text(element, "scope"),
                optional=self.text(element, "optional"),
            )
            for element in self.children(self.child(parent, "dependencies"), "dependency")
        )

    def profile(self, element: ET.Element) -> PomProfile:
        activation = self.child(element, "activation")
        activation_property = None
        property_element = self.child(activation, "property")
        if property_element is not None:
            activation_property = (
                self.required_text(property_element, "name"),
                self.text(property_element, "value"),
            )
        return PomProfile(
            id=self.text(element, "id") or "default",
            active_by_default=(self.text(activation, "activeByDefault") or "").lower() == "true",
            activation_property=activation_property,
            properties=self.properties(element),
            dependencies=self.dependencies(element),
            dependency_management=self.dependencies(self.child(element, "dependencyManagement")),
        )


@dataclass(frozen=True)
class EffectivePom:
    """A POM after inheritance, profile activation, interpolation and dependency management."""

    group: str
    artifact: str
    version: str
    packaging: str
    properties: Mapping[str, str]
    dependencies: tuple[PomDependency, ...]
    dependency_management: tuple[PomDependency, ...]

    def dependency_edges(self) -> tuple[DependencyEdge, ...]:
        return tuple(
            DependencyEdge(
                coordinate=ArtifactCoordinate(
                    group=dep.group,
                    artifact=dep.artifact,
                    version=dep.version or "",
                    packaging=dep.packaging,
                    classifier=dep.classifier,
                ),
                scope=dep.scope or "compile",
                optional=dep.is_optional,
            )
            for dep in self.dependencies
        )


PomLoader = Callable[[ArtifactCoordinate], Pom]


class PomModelBuilder:
    """Builds `EffectivePom`s, loading parents and imported BOMs through `pom_loader`.

    The builder never resolves dependencies themselves: it only reads descriptors.
    """

    def __init__(self, pom_loader: PomLoader, context: ResolutionContext) -> None:
        self._load = pom_loader
        self._context = context

    def build(self, coordinate: ArtifactCoordinate) -> EffectivePom:
        return self._build(coordinate.pom_coordinate(), importing=())

    def _build(
        self, pom_coordinate: ArtifactCoordinate, importing: tuple[ArtifactCoordinate, ...]
    ) -> EffectivePom:
        lineage = self._lineage(pom_coordinate)
        pom = lineage[-1]

        properties: dict[str, str] = {}
        dependencies: dict[tuple, PomDependency] = {}
        managed: dict[tuple, PomDependency] = {}
        for ancestor in lineage:
            properties.update(ancestor.properties)
            for dep in ancestor.dependencies:
                dependencies[dep.management_key] = dep
            for dep in ancestor.dependency_management:
                managed[dep.management_key] = dep
            for profile in self._active_profiles(ancestor):
                logger.debug(f"Activating profile {profile.id} of {ancestor.source}")
                properties.update(profile.properties)
                for dep in profile.dependencies:
                    dependencies[dep.management_key] = dep
                for dep in profile.dependency_management:
                    managed[dep.management_key] = dep

        group = pom.effective_group
        version = pom.effective_version
        if group is None or version is None:
            raise DescriptorError(
                f"POM {pom.source} does not declare a groupId and version, nor inherit them."
            )

        model_values = {
            "groupId": group,
            "artifactId": pom.artifact,
            "version": version,
            "packaging": pom.packaging,
        }
        if pom.parent is not None:
            model_values.update(
                {
                    "parent.groupId": pom.parent.group,
                    "parent.artifactId": pom.parent.artifact,
                    "parent.version": pom.parent.version,
                }
            )
        interpolate = _Interpolator(model_values, self._context.user_properties, properties)
        group = interpolate(group)
        version = interpolate(version)

        interpolated_managed = [dep.interpolate(interpolate) for dep in managed.values()]
        managed_by_key: dict[tuple, PomDependency] = {}
        imports = []
        for dep in interpolated_managed:
            if dep.scope == "import" and dep.packaging == "pom":
                imports.append(dep)
            else:
                managed_by_key[dep.management_key] = dep
        for bom in imports:
            for dep in self._import(bom, importing + (pom_coordinate,)):
                managed_by_key.setdefault(dep.management_key, dep)

        effective_dependencies = tuple(
            self._manage(dep.interpolate(interpolate), managed_by_key, pom.source)
            for dep in dependencies.values()
        )
        return EffectivePom(
            group=group,
            artifact=pom.artifact,
            version=version,
            packaging=pom.packaging,
            properties={k: interpolate(v) for k, v in properties.items()},
            dependencies=effective_dependencies,
            dependency_management=tuple(managed_by_key.values()),
        )

    def _lineage(self, pom_coordinate: ArtifactCoordinate) -> list[Pom]:
        """The POM and its parents, eldest first."""
        lineage = []
        seen: set[ArtifactCoordinate] = set()
        current: ArtifactCoordinate | None = pom_coordinate
        while current is not None:
            if current in seen:
                raise DescriptorError(
                    f"The parents of {pom_coordinate.to_coord_str()} form a cycle at "
                    f"{current.to_coord_str()}."
                )
            seen.add(current)
            pom = self._load(current)
            lineage.append(pom)
            current = pom.parent
        lineage.reverse()
        return lineage

    def _active_profiles(self, pom: Pom) -> list[PomProfile]:
        inactive = set(self._context.inactive_profiles)
        explicit = set(self._context.active_profiles)
        candidates = [p for p in pom.profiles if p.id not in inactive]
        active = [
            p
            for p in candidates
            if p.id in explicit or p.activated_by(self._context.user_properties)
        ]
        if active:
            return active
        return [p for p in candidates if p.active_by_default]

    def _import(
        self, bom: PomDependency, importing: tuple[ArtifactCoordinate, ...]
    ) -> tuple[PomDependency, ...]:
        if not bom.version:
            raise DescriptorError(
                f"Imported POM {bom.group}:{bom.artifact} does not declare a version."
            )
        bom_coordinate = ArtifactCoordinate(bom.group, bom.artifact, bom.version, "pom")
        if bom_coordinate in importing:
            raise DescriptorError(f"Cyclic import of {bom_coordinate.to_coord_str()}.")
        return self._build(bom_coordinate, importing).dependency_management

    @staticmethod
    def _manage(
        dep: PomDependency, managed: Mapping[tuple, PomDependency], source: str
    ) -> PomDependency:
        management = managed.get(dep.management_key)
        if management is not None:
            dep = replace(
                dep,
                version=dep.version or management.version,
                scope=dep.scope or management.scope,
                optional=dep.optional if dep.optional is not None else management.optional,
            )
        if not dep.version:
            raise DescriptorError(
                f"'dependencies.dependency.version' for "
                f"{dep.group}:{dep.artifact}:{dep.packaging} is missing in {source}."
            )
        return dep


class _Interpolator:
    """Expands `${...}` expressions the way Maven does for dependency declarations.

    Lookup order: model values (`project.*`, `pom.*`), user properties, POM properties, then
    `env.*`. Unknown expressions are left verbatim.
    """

    def __init__(
        self,
        model_values: Mapping[str, str],
        user_properties: Mapping[str, str],
        properties: Mapping[str, str],
    ) -> None:
        self._model_values = model_values
        self._user_properties = user_properties
        self._properties = properties

    def _lookup(self, expression: str) -> str | None:
        for prefix in ("project.", "pom."):
            if expression.startswith(prefix):
                value = self._model_values.get(expression[len(prefix) :])
                if value is not None:
                    return value
        if expression in self._user_properties:
            return self._user_properties[expression]
        if expression in self._properties:
            return self._properties[expression]
        if expression.startswith("env."):
            return os.environ.get(expression[len("env.") :])
        return None

    def __call__(self, value: str) -> str:
        def substitute(match: re.Match) -> str:
            replacement = self._lookup(match.group(1))
            return match.group(0) if replacement is None else replacement

        for _ in range(_MAX_INTERPOLATION_PASSES):
            expanded = _EXPRESSION_RE.sub(substitute, value)
            if expanded == value:
                return expanded
            value = expanded
        raise DescriptorError(f"Recursive property expression: {value}")
