# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from mvnfetch.base.exceptions import ConfigError
from mvnfetch.config import Config, FileContent

FILE_0 = dedent(
    """
    [DEFAULT]
    cache = "%(homedir)s/.cache/mvnfetch"
    mirror = "https://%(env.MIRROR_HOST)s/maven2"

    [resolve]
    local_repository = "%(cache)s/repository"
    offline = false
    active_profiles = ["ci"]
    user_properties = { "java.version" = "17", "dir" = "%(cache)s" }

    [[resolve.repositories]]
    id = "mirror"
    url = "%(mirror)s"

    [download]
    dependency_depth = 1
    """
)

FILE_1 = dedent(
    """
    [resolve]
    offline = true

    [download]
    output_dir = "%(user)s-out"
    """
)


def load(*contents: str) -> Config:
    return Config.load(
        [FileContent(f"file{i}.toml", content.encode()) for i, content in enumerate(contents)],
        seed_values={"homedir": "/home/dev", "user": "dev"},
        env={"MIRROR_HOST": "mirror.example.com"},
    )


def test_interpolation() -> None:
    config = load(FILE_0)
    assert "/home/dev/.cache/mvnfetch/repository" == config.get("resolve", "local_repository")
    assert [{"id": "mirror", "url": "https://mirror.example.com/maven2"}] == config.get(
        "resolve", "repositories"
    )
    assert {"java.version": "17", "dir": "/home/dev/.cache/mvnfetch"} == config.get(
        "resolve", "user_properties"
    )
    assert 1 == config.get("download", "dependency_depth")


def test_later_files_override() -> None:
    config = load(FILE_0, FILE_1)
    assert config.get("resolve", "offline") is True
    assert ["ci"] == config.get("resolve", "active_profiles")
    assert "dev-out" == config.get("download", "output_dir")
    assert ["file0.toml", "file1.toml"] == config.sources()


def test_defaults_and_has_option() -> None:
    config = load(FILE_1)
    assert config.has_option("resolve", "offline")
    assert not config.has_option("resolve", "retries")
    assert 3 == config.get("resolve", "retries", 3)
    assert Config.empty().get("download", "unpack") is None


def test_invalid_option() -> None:
    with pytest.raises(ConfigError, match="Invalid option 'bogus' under \\[resolve\\]"):
        load("[resolve]\nbogus = 1\n")


def test_invalid_section() -> None:
    with pytest.raises(ConfigError, match="Invalid section \\[nope\\]"):
        load("[nope]\nx = 1\n")


def test_unparseable_toml() -> None:
    with pytest.raises(ConfigError, match="could not be parsed as TOML"):
        load("[resolve\n")


def test_failed_interpolation() -> None:
    config = load('[download]\noutput_dir = "%(missing)s"\n')
    with pytest.raises(ConfigError, match="Interpolation of"):
        config.get("download", "output_dir")


def test_load_files(tmp_path: Path) -> None:
    path = tmp_path / "mvnfetch.toml"
    path.write_text("[download]\nunpack = true\n")
    config = Config.load_files([path])
    assert config.get("download", "unpack") is True

    with pytest.raises(ConfigError, match="Problem reading config file"):
        Config.load_files([tmp_path / "missing.toml"])
