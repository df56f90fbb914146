# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from mvnfetch.base.exceptions import ConfigurationError, MaterializationError
from mvnfetch.fs.archive import ArchiveError, ArchiveExtractor, ArchiverExtractor
from mvnfetch.resolve.coordinate import ArtifactCoordinate, ResolvedArtifact
from mvnfetch.util.dirutil import safe_delete, safe_mkdir
from mvnfetch.util.strutil import pluralize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterializationReport:
    """What a successful materialization placed into the output directory."""

    output_dir: Path
    copied: tuple[Path, ...] = ()
    unpacked: tuple[ArtifactCoordinate, ...] = ()

    def __len__(self) -> int:
        return len(self.copied) + len(self.unpacked)


class ArtifactMaterializer:
    """Places resolved artifact files into an output directory, copied or unpacked."""

    def __init__(self, extractor: ArchiveExtractor | None = None) -> None:
        self._extractor = extractor or ArchiverExtractor()

    def materialize(
        self,
        artifacts: Iterable[ResolvedArtifact],
        output_dir: Path,
        unpack: bool = False,
        explicit_name: str | None = None,
    ) -> MaterializationReport:
        """Copies (or, with `unpack`, extracts) each artifact's file into `output_dir`.

        Every artifact is attempted before any failure is reported, so the artifacts that can be
        placed are.

        :raises: :class:`mvnfetch.base.exceptions.ConfigurationError` if `explicit_name` is given
          for more than one artifact.
        :raises: :class:`mvnfetch.base.exceptions.MaterializationError` listing every artifact
          that could not be placed.
        """
        artifacts = tuple(artifacts)
        if explicit_name and len(artifacts) > 1:
            raise ConfigurationError(
                f"An explicit output file name ({explicit_name}) cannot be used for "
                f"{pluralize(len(artifacts), 'artifact')}."
            )

        output_dir = Path(output_dir)
        safe_mkdir(output_dir)

        copied: list[Path] = []
        unpacked: list[ArtifactCoordinate] = []
        failures: list[tuple[ArtifactCoordinate, str]] = []
        for artifact in artifacts:
            source = artifact.file
            if not artifact.resolved or source is None or not source.is_file():
                failures.append(
                    (
                        artifact.coordinate,
                        f"Artifact file not resolved for artifact: {artifact.coordinate}",
                    )
                )
                continue

            try:
                if unpack:
                    logger.info(f"Unpacking {source} into {output_dir}")
                    self._extractor.extract(source, output_dir)
                    unpacked.append(artifact.coordinate)
                else:
                    copied.append(self._copy(source, output_dir / (explicit_name or source.name)))
            except (ArchiveError, OSError) as e:
                failures.append((artifact.coordinate, str(e)))

        if failures:
            raise MaterializationError(failures)
        return MaterializationReport(
            output_dir=output_dir, copied=tuple(copied), unpacked=tuple(unpacked)
        )

    @staticmethod
    def _copy(source: Path, destination: Path) -> Path:
        logger.info(f"Copying {source} to {destination}")
        # Replace rather than write through, in case the destination is a link into a repository.
        safe_delete(destination)
        shutil.copyfile(source, destination)
        return destination
