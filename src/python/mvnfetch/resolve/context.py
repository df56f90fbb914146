# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from mvnfetch.base.exceptions import ConfigError
from mvnfetch.config import Config


class ChecksumPolicy(Enum):
    FAIL = "fail"
    WARN = "warn"
    IGNORE = "ignore"


@dataclass(frozen=True)
class RemoteRepository:
    """A remote Maven-layout repository, addressed by an `http(s)://` or `file://` url."""

    id: str
    url: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", self.url.rstrip("/"))

    def url_for(self, relpath: str) -> str:
        return f"{self.url}/{relpath}"


MAVEN_CENTRAL = RemoteRepository("central", "https://repo.maven.apache.org/maven2")

DEFAULT_EXCLUDED_SCOPES: tuple[str, ...] = ()


def default_local_repository() -> Path:
    return Path(os.path.expanduser("~")) / ".m2" / "repository"


@dataclass(frozen=True)
class ResolutionContext:
    """Session-scoped settings for a repository resolver.

    One context is built per invocation and handed to the resolver explicitly; nothing in it is
    mutated during a resolve.
    """

    local_repository: Path = field(default_factory=default_local_repository)
    remote_repositories: tuple[RemoteRepository, ...] = (MAVEN_CENTRAL,)
    offline: bool = False
    active_profiles: tuple[str, ...] = ()
    inactive_profiles: tuple[str, ...] = ()
    user_properties: Mapping[str, str] = field(default_factory=dict)
    excluded_scopes: tuple[str, ...] = DEFAULT_EXCLUDED_SCOPES
    include_optional: bool = True
    checksum_policy: ChecksumPolicy = ChecksumPolicy.WARN
    timeout_secs: float = 30.0
    retries: int = 2

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> ResolutionContext:
        """Builds a context from the `[resolve]` section of `config`.

        Keyword `overrides` win over configured values and are typically taken from the command
        line; a value of None means "not given".
        """
        section = "resolve"
        kwargs: dict[str, Any] = {}

        local_repository = config.get(section, "local_repository")
        if local_repository is not None:
            kwargs["local_repository"] = Path(os.path.expanduser(local_repository))

        repositories = config.get(section, "repositories")
        if repositories is not None:
            kwargs["remote_repositories"] = tuple(
                cls._parse_repository(entry, index) for index, entry in enumerate(repositories)
            )

        for option in ("active_profiles", "inactive_profiles", "excluded_scopes"):
            value = config.get(section, option)
            if value is not None:
                if not isinstance(value, list):
                    raise ConfigError(f"[{section}] {option} must be a list, given {value!r}")
                kwargs[option] = tuple(str(v) for v in value)

        user_properties = config.get(section, "user_properties")
        if user_properties is not None:
            if not isinstance(user_properties, dict):
                raise ConfigError(f"[{section}] user_properties must be a table.")
            kwargs["user_properties"] = {str(k): str(v) for k, v in user_properties.items()}

        for option, type_ in (
            ("offline", bool),
            ("include_optional", bool),
            ("timeout_secs", float),
            ("retries", int),
        ):
            value = config.get(section, option)
            if value is not None:
                kwargs[option] = type_(value)

        checksum_policy = config.get(section, "checksum_policy")
        if checksum_policy is not None:
            try:
                kwargs["checksum_policy"] = ChecksumPolicy(checksum_policy)
            except ValueError:
                raise ConfigError(
                    f"[{section}] checksum_policy must be one of "
                    f"{', '.join(p.value for p in ChecksumPolicy)}, given {checksum_policy!r}"
                )

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)

    @staticmethod
    def _parse_repository(entry: Any, index: int) -> RemoteRepository:
        if isinstance(entry, str):
            return RemoteRepository(f"repo{index}", entry)
        if isinstance(entry, dict) and "url" in entry:
            return RemoteRepository(str(entry.get("id", f"repo{index}")), str(entry["url"]))
        raise ConfigError(
            f"Each [[resolve.repositories]] entry needs a `url`, given {entry!r}"
        )

    def with_remote_urls(self, urls: tuple[str, ...]) -> ResolutionContext:
        return replace(
            self,
            remote_repositories=tuple(
                RemoteRepository(f"cli{index}", url) for index, url in enumerate(urls)
            ),
        )
