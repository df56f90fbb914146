# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import io
import os
import tarfile
import warnings
import zipfile
from pathlib import Path

import pytest

from mvnfetch.fs.archive import (
    TAR,
    TGZ,
    TXZ,
    ZIP,
    ArchiveError,
    ArchiverExtractor,
    UnsupportedArchiveError,
    archiver_for_path,
)
from mvnfetch.testutil.archives import TYPE_NAMES, create_archive
from mvnfetch.util.contextutil import open_tar, open_zip
from mvnfetch.util.dirutil import safe_file_dump


def _listtree(root: Path) -> set[str]:
    listing = set()
    for path, dirs, files in os.walk(root):
        relpath = os.path.normpath(os.path.relpath(path, root))
        for filename in files:
            listing.add(os.path.normpath(os.path.join(relpath, filename)))
    return listing


@pytest.fixture
def fromdir(tmp_path: Path) -> Path:
    fromdir = tmp_path / "from"
    safe_file_dump(fromdir / "a" / "b" / "c", "c", makedirs=True)
    safe_file_dump(fromdir / "META-INF" / "MANIFEST.MF", "Manifest-Version: 1.0\n", makedirs=True)
    return fromdir


@pytest.mark.parametrize("typename", sorted(TYPE_NAMES))
def test_extract(typename: str, fromdir: Path, tmp_path: Path) -> None:
    archive = create_archive(typename, fromdir, tmp_path, "archive")
    todir = tmp_path / "to"
    ArchiverExtractor().extract(archive, todir)
    assert {"a/b/c", "META-INF/MANIFEST.MF"} == _listtree(todir)


@pytest.mark.parametrize(
    "name, archiver",
    [
        ("core-1.0.jar", ZIP),
        ("app-1.0.war", ZIP),
        ("lib-1.0.aar", ZIP),
        ("dist-1.0.ZIP", ZIP),
        ("dist-1.0.tar.gz", TGZ),
        ("dist-1.0.tgz", TGZ),
        ("dist-1.0.tar.xz", TXZ),
        ("dist-1.0.tar", TAR),
    ],
)
def test_archiver_for_path(name: str, archiver) -> None:
    assert archiver is archiver_for_path(name)


@pytest.mark.parametrize("name", ["core-1.0.pom", "README"])
def test_archiver_for_path_unsupported(name: str) -> None:
    with pytest.raises(UnsupportedArchiveError):
        archiver_for_path(name)


def test_extract_sniffs_unknown_extension(fromdir: Path, tmp_path: Path) -> None:
    archive = create_archive("jar", fromdir, tmp_path, "plugin")
    renamed = archive.with_suffix(".hpi2")
    archive.rename(renamed)
    todir = tmp_path / "to"
    ArchiverExtractor().extract(renamed, todir)
    assert "c" == (todir / "a" / "b" / "c").read_text()


def test_extract_not_an_archive(tmp_path: Path) -> None:
    pom = tmp_path / "core-1.0.pom"
    pom.write_text("<project/>")
    with pytest.raises(UnsupportedArchiveError):
        ArchiverExtractor().extract(pom, tmp_path / "to")


def test_extract_corrupt_zip(tmp_path: Path) -> None:
    jar = tmp_path / "core-1.0.jar"
    jar.write_bytes(b"PK\x03\x04 but not really")
    with pytest.raises(ArchiveError):
        ArchiverExtractor().extract(jar, tmp_path / "to")


def test_extract_rejects_zip_slip(tmp_path: Path) -> None:
    jar = tmp_path / "evil.jar"
    with open_zip(str(jar), "w") as zf:
        zf.writestr("../../escaped.txt", "gotcha")
    with pytest.raises(ArchiveError, match="unsafe path"):
        ArchiverExtractor().extract(jar, tmp_path / "to")
    assert not (tmp_path.parent / "escaped.txt").exists()


def test_extract_rejects_absolute_tar_member(tmp_path: Path) -> None:
    tar_path = tmp_path / "evil.tar"
    with open_tar(str(tar_path), "w") as tar:
        info = tarfile.TarInfo("/tmp/escaped.txt")
        data = b"gotcha"
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))
    with pytest.raises(ArchiveError, match="unsafe path"):
        ArchiverExtractor().extract(tar_path, tmp_path / "to")


def test_extract_overlays_existing_content(fromdir: Path, tmp_path: Path) -> None:
    archive = create_archive("zip", fromdir, tmp_path, "archive")
    todir = tmp_path / "to"
    safe_file_dump(todir / "existing.txt", "keep", makedirs=True)
    ArchiverExtractor().extract(archive, todir)
    assert "keep" == (todir / "existing.txt").read_text()
    assert zipfile.is_zipfile(archive)


def test_extract_tar_without_deprecation_warnings(fromdir: Path, tmp_path: Path) -> None:
    archive = create_archive("tgz", fromdir, tmp_path, "archive")
    todir = tmp_path / "to"
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        ArchiverExtractor().extract(archive, todir)
    assert "c" == (todir / "a" / "b" / "c").read_text()
