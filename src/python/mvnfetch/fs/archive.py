# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Support for archive extraction in a uniform API across archive types."""

from __future__ import annotations

import logging
import os
import tarfile
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path

from mvnfetch.util.contextutil import open_tar, open_zip
from mvnfetch.util.dirutil import safe_mkdir

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """Indicates an archive that could not be read or safely extracted."""


class UnsupportedArchiveError(ArchiveError):
    """Indicates a file whose archive type cannot be determined or is not supported."""


def _check_member_path(archive: str, name: str) -> None:
    normalized = os.path.normpath(name)
    if os.path.isabs(name) or normalized == ".." or normalized.startswith(f"..{os.sep}"):
        raise ArchiveError(f"Archive {archive} contains unsafe path: {name}")


# Member paths are vetted before extraction; the "data" filter also normalizes permissions and
# is the default from Python 3.14 on.
_TAR_EXTRACT_KWARGS = {"filter": "data"} if hasattr(tarfile, "data_filter") else {}


class Archiver(ABC):
    def __init__(self, extension: str) -> None:
        self.extension = extension

    def extract(self, path: str, outdir: str) -> None:
        """Extracts an archive's contents to the specified outdir, overlaying existing content."""
        safe_mkdir(outdir)
        self._extract(path, outdir)

    @abstractmethod
    def _extract(self, path: str, outdir: str) -> None:
        ...


class TarArchiver(Archiver):
    """Extracts tar files, compressed or not."""

    def _extract(self, path: str, outdir: str) -> None:
        with open_tar(path, "r:*", errorlevel=1) as tar:
            members = tar.getmembers()
            for member in members:
                _check_member_path(path, member.name)
                if member.issym():
                    link_target = os.path.join(os.path.dirname(member.name), member.linkname)
                    _check_member_path(path, link_target)
                elif member.islnk():
                    _check_member_path(path, member.linkname)
            tar.extractall(outdir, members=members, **_TAR_EXTRACT_KWARGS)


class ZipArchiver(Archiver):
    """Extracts zip files.

    Jars, wars, ears and friends are all zip files and share this archiver.
    """

    def _extract(self, path: str, outdir: str) -> None:
        with open_zip(path) as archive_file:
            for name in archive_file.namelist():
                _check_member_path(path, name)
            archive_file.extractall(outdir)


TAR = TarArchiver("tar")
TGZ = TarArchiver("tar.gz")
TBZ2 = TarArchiver("tar.bz2")
TXZ = TarArchiver("tar.xz")
ZIP = ZipArchiver("zip")

# Zip containers published to Maven repositories under their own extension.
ZIP_EXTENSIONS = frozenset(
    {"zip", "jar", "war", "ear", "rar", "aar", "apk", "nar", "hpi", "jpi", "kar", "sar", "har"}
)

_EXTENSION_ALIASES = {
    "tar.gz": TGZ,
    "tgz": TGZ,
    "tar.bz2": TBZ2,
    "tbz2": TBZ2,
    "tar.xz": TXZ,
    "txz": TXZ,
    "tar": TAR,
}


def archiver_for_path(path_name: str) -> Archiver:
    """Returns an Archiver for the given path name, judged by its extension.

    :param string path_name: The path name of the archive - need not exist.
    :raises: :class:`UnsupportedArchiveError` If the path name does not identify a supported
      archive type.
    """
    lowered = os.path.basename(path_name).lower()
    for suffix, archiver in _EXTENSION_ALIASES.items():
        if lowered.endswith(f".{suffix}"):
            return archiver
    _, ext = os.path.splitext(lowered)
    ext = ext[1:]
    if ext in ZIP_EXTENSIONS:
        return ZIP
    if not ext:
        raise UnsupportedArchiveError(f"Could not determine archive type of path {path_name}")
    raise UnsupportedArchiveError(f"No archiver registered for extension {ext!r} of {path_name}")


def sniff_archiver(path: str) -> Archiver | None:
    """Returns an Archiver judged by the content of an existing file, if it is an archive."""
    if zipfile.is_zipfile(path):
        return ZIP
    if tarfile.is_tarfile(path):
        return TAR
    return None


class ArchiveExtractor(ABC):
    """Explodes an archive into a directory, using the archive's own internal layout."""

    @abstractmethod
    def extract(self, archive_file: Path, dest_dir: Path) -> None:
        """:raises: :class:`ArchiveError` (or :class:`UnsupportedArchiveError`) on failure."""


class ArchiverExtractor(ArchiveExtractor):
    """Extracts zip-family and tar archives, dispatching on extension and then on content."""

    def extract(self, archive_file: Path, dest_dir: Path) -> None:
        path = str(archive_file)
        try:
            archiver = archiver_for_path(path)
        except UnsupportedArchiveError:
            archiver = sniff_archiver(path)
            if archiver is None:
                raise
        logger.debug(f"Extracting {path} into {dest_dir} as {archiver.extension}")
        try:
            archiver.extract(path, str(dest_dir))
        except (zipfile.BadZipfile, tarfile.TarError, OSError) as e:
            raise ArchiveError(f"Failed to extract {path}: {e}") from e
