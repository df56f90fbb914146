# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

import os
from pathlib import Path

import pytest

from mvnfetch.util.dirutil import (
    read_file,
    safe_concurrent_creation,
    safe_delete,
    safe_file_dump,
    safe_mkdir,
    safe_rmtree,
)


def test_safe_mkdir_clean(tmp_path: Path) -> None:
    directory = tmp_path / "a" / "b"
    safe_mkdir(directory)
    safe_file_dump(directory / "stale", "")
    safe_mkdir(directory)
    assert (directory / "stale").exists()

    safe_mkdir(directory, clean=True)
    assert directory.is_dir()
    assert not (directory / "stale").exists()


def test_safe_file_dump_and_read(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "file.txt"
    safe_file_dump(path, "hello", makedirs=True)
    assert "hello" == read_file(path)

    safe_file_dump(path, b"\x00\x01", mode="wb")
    assert b"\x00\x01" == read_file(path, binary_mode=True)


def test_safe_delete_missing_is_noop(tmp_path: Path) -> None:
    safe_delete(tmp_path / "missing")
    path = tmp_path / "present"
    safe_file_dump(path, "")
    safe_delete(path)
    assert not path.exists()


def test_safe_rmtree(tmp_path: Path) -> None:
    directory = tmp_path / "tree"
    safe_file_dump(directory / "sub" / "f", "x", makedirs=True)
    safe_rmtree(directory)
    assert not directory.exists()
    safe_rmtree(directory)


def test_safe_concurrent_creation(tmp_path: Path) -> None:
    expected_file = tmp_path / "dir" / "expected_file"
    with safe_concurrent_creation(str(expected_file)) as tmp_expected_file:
        safe_file_dump(tmp_expected_file, "content")
        assert os.path.exists(tmp_expected_file)
        assert not expected_file.exists()
    assert "content" == read_file(expected_file)


def test_safe_concurrent_creation_noop(tmp_path: Path) -> None:
    expected_file = tmp_path / "parent_dir" / "expected_file"
    # Ensure safe_concurrent_creation() doesn't bomb if we don't write the expected files.
    with safe_concurrent_creation(str(expected_file)):
        pass
    assert not expected_file.exists()
    assert expected_file.parent.exists()


def test_safe_concurrent_creation_exception_removes_partial_file(tmp_path: Path) -> None:
    expected_file = tmp_path / "expected_file"
    with pytest.raises(ZeroDivisionError):
        with safe_concurrent_creation(str(expected_file)) as tmp_file:
            safe_file_dump(tmp_file, "partial")
            1 / 0
    assert not expected_file.exists()
    assert [] == os.listdir(tmp_path)
