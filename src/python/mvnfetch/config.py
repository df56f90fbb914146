# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import getpass
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Iterable, Mapping

import toml
from typing_extensions import Protocol

from mvnfetch.base.exceptions import ConfigError

logger = logging.getLogger(__name__)


class ConfigSource(Protocol):
    """Anything with a `path` and raw `content`, e.g. a `FileContent`."""

    @property
    def path(self) -> str:
        raise NotImplementedError()

    @property
    def content(self) -> bytes:
        raise NotImplementedError()


@dataclass(frozen=True)
class FileContent:
    path: str
    content: bytes

    @classmethod
    def read(cls, path: str | Path) -> FileContent:
        try:
            return cls(str(path), Path(path).read_bytes())
        except OSError as e:
            raise ConfigError(f"Problem reading config file {path}: {e!r}")


DEFAULT_SECTION = "DEFAULT"

# The options each section accepts; anything else in a known section is an error.
SECTION_TO_VALID_OPTIONS: dict[str, set[str]] = {
    "resolve": {
        "local_repository",
        "repositories",
        "offline",
        "active_profiles",
        "inactive_profiles",
        "user_properties",
        "excluded_scopes",
        "include_optional",
        "checksum_policy",
        "timeout_secs",
        "retries",
    },
    "download": {
        "output_dir",
        "unpack",
        "dependency_depth",
    },
}

_INTERPOLATION_RE = re.compile(r"%\((?P<interpolated>[a-zA-Z_0-9.]+)\)s")


@dataclass(frozen=True, eq=False)
class Config:
    """Encapsulates loading of and access to one or more TOML config files.

    Supports variable substitution using old-style Python format strings. E.g., %(var_name)s will be
    replaced with the value of var_name from the DEFAULT section or a seed value, and
    %(env.HOME)s with the value of the HOME environment variable.
    """

    values: tuple[_ConfigValues, ...]

    @classmethod
    def load(
        cls,
        file_contents: Iterable[ConfigSource],
        *,
        seed_values: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> Config:
        """Loads config from the given payloads, with later payloads overriding earlier ones."""
        normalized_seed_values = cls._determine_seed_values(seed_values=seed_values, env=env)
        config_values = []
        for file_content in file_contents:
            try:
                toml_values = toml.loads(file_content.content.decode())
            except Exception as e:
                raise ConfigError(
                    f"Config file {file_content.path} could not be parsed as TOML:\n  {e}"
                )
            seed = {**normalized_seed_values, **toml_values.get(DEFAULT_SECTION, {})}
            config_values.append(_ConfigValues(file_content.path, toml_values, seed))
        config = cls(tuple(config_values))
        config.verify(SECTION_TO_VALID_OPTIONS)
        return config

    @classmethod
    def load_files(cls, paths: Iterable[str | Path], **kwargs: Any) -> Config:
        return cls.load((FileContent.read(path) for path in paths), **kwargs)

    @classmethod
    def empty(cls) -> Config:
        return cls(())

    @staticmethod
    def _determine_seed_values(
        *, seed_values: Mapping[str, str] | None = None, env: Mapping[str, str] | None = None
    ) -> dict[str, Any]:
        all_seed_values: dict[str, Any] = {
            # Note that expanduser will return the root dir when running with a uid
            # not associated with a user.
            "homedir": os.path.expanduser("~"),
            "user": getpass.getuser(),
        }
        all_seed_values.update(seed_values or {})
        all_seed_values["env"] = SimpleNamespace(**(os.environ if env is None else env))
        return all_seed_values

    def verify(self, section_to_valid_options: dict[str, set[str]]) -> None:
        error_log = []
        for config_values in self.values:
            error_log.extend(config_values.get_verification_errors(section_to_valid_options))
        if error_log:
            for error in error_log:
                logger.error(error)
            raise ConfigError(
                "Invalid config entries detected:\n  " + "\n  ".join(error_log)
            )

    def has_option(self, section: str, option: str) -> bool:
        return any(vals.has_value(section, option) for vals in self.values)

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """Retrieves an option value, taking it from the last config file in which it appears."""
        for vals in reversed(self.values):
            if vals.has_value(section, option):
                return vals.get_value(section, option)
        return default

    def sources(self) -> list[str]:
        """Returns the sources of this config as a list of filenames."""
        return [vals.path for vals in self.values]


@dataclass(frozen=True)
class _ConfigValues:
    """The parsed contents of a TOML config file."""

    path: str
    section_to_values: dict[str, dict[str, Any]]
    seed_values: dict[str, Any]

    def _possibly_interpolate_value(self, raw_value: str, *, option: str, section: str) -> str:
        """For any values with %(foo)s, substitute it with the corresponding value from DEFAULT, the
        seed values or the same section."""
        section_values = self.section_to_values.get(section, {})

        def format_str(value: str) -> str:
            # Escape embedded { and } characters, so that .format() does not act on them.
            escaped_str = value.replace("{", "{{").replace("}", "}}")
            new_style_format_str = _INTERPOLATION_RE.sub(r"{\g<interpolated>}", escaped_str)
            try:
                return new_style_format_str.format(**{**self.seed_values, **section_values})
            except (KeyError, AttributeError) as e:
                raise ConfigError(
                    f"Interpolation of {raw_value!r} for option {option!r} in section [{section}] "
                    f"of {self.path} failed: {e}"
                )

        value = raw_value
        # It's possible to interpolate with a value that itself has an interpolation.
        while _INTERPOLATION_RE.search(value):
            value = format_str(value)
        return value

    def _interpolate(self, raw: Any, *, option: str, section: str) -> Any:
        if isinstance(raw, str):
            return self._possibly_interpolate_value(raw, option=option, section=section)
        if isinstance(raw, list):
            return [self._interpolate(v, option=option, section=section) for v in raw]
        if isinstance(raw, dict):
            return {k: self._interpolate(v, option=option, section=section) for k, v in raw.items()}
        return raw

    def has_value(self, section: str, option: str) -> bool:
        return option in self.section_to_values.get(section, {})

    def get_value(self, section: str, option: str) -> Any:
        raw = self.section_to_values.get(section, {}).get(option)
        return self._interpolate(raw, option=option, section=section)

    def get_verification_errors(self, section_to_valid_options: dict[str, set[str]]) -> list[str]:
        error_log = []
        for section, vals in self.section_to_values.items():
            if section == DEFAULT_SECTION:
                continue
            try:
                valid_options_in_section = section_to_valid_options[section]
            except KeyError:
                error_log.append(f"Invalid section [{section}] in {self.path}")
            else:
                for option in sorted(set(vals.keys()) - valid_options_in_section):
                    error_log.append(f"Invalid option '{option}' under [{section}] in {self.path}")
        return error_log
