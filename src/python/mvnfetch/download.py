# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Downloads a single artifact, and optionally some of its dependencies, into a directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from mvnfetch.base.exceptions import ConfigurationError
from mvnfetch.config import Config
from mvnfetch.fs.archive import ArchiveExtractor, ArchiverExtractor
from mvnfetch.fs.materialize import ArtifactMaterializer
from mvnfetch.resolve.closure import ClosureResolver, ClosureResult
from mvnfetch.resolve.coordinate import ArtifactCoordinate
from mvnfetch.resolve.repository import RepositoryResolver
from mvnfetch.util.dirutil import safe_mkdir
from mvnfetch.util.strutil import pluralize, softwrap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadRequest:
    """A single download: which artifact, how deep, and where its files go."""

    group: str
    artifact: str
    version: str
    output_dir: Path
    packaging: str = "jar"
    classifier: str | None = None
    output_file_name: str | None = None
    unpack: bool = False
    skip: bool = False
    dependency_depth: int = 0

    @property
    def coordinate(self) -> ArtifactCoordinate:
        return ArtifactCoordinate(
            group=self.group,
            artifact=self.artifact,
            version=self.version,
            packaging=self.packaging,
            classifier=self.classifier,
        )

    @classmethod
    def for_coordinate(
        cls, coordinate: ArtifactCoordinate, output_dir: Path, **kwargs
    ) -> DownloadRequest:
        return cls(
            group=coordinate.group,
            artifact=coordinate.artifact,
            version=coordinate.version,
            packaging=coordinate.packaging,
            classifier=coordinate.classifier,
            output_dir=output_dir,
            **kwargs,
        )

    @classmethod
    def from_config(
        cls, coordinate: ArtifactCoordinate, config: Config, **overrides
    ) -> DownloadRequest:
        """Builds a request from the `[download]` config section; `None` overrides are ignored."""
        values = {
            "output_dir": Path(config.get("download", "output_dir", ".")),
            "unpack": bool(config.get("download", "unpack", False)),
            "dependency_depth": config.get("download", "dependency_depth", 0),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["output_dir"] = Path(values["output_dir"])
        return cls.for_coordinate(coordinate, **values)


class ArtifactDownload:
    """Validates a `DownloadRequest`, resolves its closure and materializes it."""

    def __init__(
        self, resolver: RepositoryResolver, extractor: ArchiveExtractor | None = None
    ) -> None:
        self._closure_resolver = ClosureResolver(resolver)
        self._materializer = ArtifactMaterializer(extractor or ArchiverExtractor())

    @staticmethod
    def validate(request: DownloadRequest) -> None:
        depth = request.dependency_depth
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
            raise ConfigurationError(
                f"The dependency depth must be a non-negative integer, given {depth!r}."
            )
        if depth > 0 and request.output_file_name:
            raise ConfigurationError(
                softwrap(
                    f"""
                    Cannot have a dependency depth higher than 0 ({depth}) and an output file
                    name ({request.output_file_name}): every downloaded artifact would be
                    written to the same file.
                    """
                )
            )

    def execute(self, request: DownloadRequest) -> ClosureResult | None:
        """Runs the download, returning the closure that was materialized.

        Returns None, doing nothing at all, for a skipped request.

        :raises: :class:`mvnfetch.base.exceptions.ConfigurationError` for an invalid request,
          before anything is resolved.
        :raises: :class:`mvnfetch.base.exceptions.ResolutionError` if the closure cannot be
          resolved; nothing is written in that case.
        :raises: :class:`mvnfetch.base.exceptions.MaterializationError` if some artifacts could
          not be placed.
        """
        if request.skip:
            logger.info("mvnfetch: download skipped")
            return None
        self.validate(request)

        output_dir = Path(request.output_dir)
        safe_mkdir(output_dir)

        coordinate = request.coordinate
        logger.info(
            f"Resolving {coordinate.to_coord_str()} with dependency depth "
            f"{request.dependency_depth}"
        )
        closure = self._closure_resolver.resolve(coordinate, request.dependency_depth)
        report = self._materializer.materialize(
            closure.artifacts,
            output_dir,
            unpack=request.unpack,
            explicit_name=request.output_file_name,
        )
        logger.info(f"Placed {pluralize(len(closure), 'artifact')} into {report.output_dir}")
        return closure
