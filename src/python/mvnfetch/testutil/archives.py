# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import os
from pathlib import Path
from zipfile import ZIP_DEFLATED

from mvnfetch.util.contextutil import open_tar, open_zip

_TAR_MODES = {
    "tar": ("w:", "tar"),
    "tgz": ("w:gz", "tar.gz"),
    "tbz2": ("w:bz2", "tar.bz2"),
    "txz": ("w:xz", "tar.xz"),
}
_ZIP_EXTENSIONS = frozenset({"zip", "jar", "war"})

TYPE_NAMES = frozenset(_TAR_MODES) | _ZIP_EXTENSIONS


def create_archive(typename: str, basedir: Path, outdir: Path, name: str) -> Path:
    """Archives every file under `basedir` into `outdir/name.<ext>`, paths relative to `basedir`."""
    if typename in _TAR_MODES:
        mode, extension = _TAR_MODES[typename]
        archive = Path(outdir) / f"{name}.{extension}"
        with open_tar(str(archive), mode, errorlevel=1) as tar:
            tar.add(str(basedir), arcname=".")
        return archive
    if typename in _ZIP_EXTENSIONS:
        archive = Path(outdir) / f"{name}.{typename}"
        with open_zip(str(archive), "w", compression=ZIP_DEFLATED) as zf:
            for root, _, files in os.walk(basedir):
                for file in sorted(files):
                    full_path = os.path.join(root, file)
                    zf.write(full_path, os.path.relpath(full_path, basedir))
        return archive
    raise ValueError(f"No archive type {typename!r}, expected one of {sorted(TYPE_NAMES)}")
