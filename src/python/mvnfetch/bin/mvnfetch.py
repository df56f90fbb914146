# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""The `mvnfetch` command: downloads a Maven artifact and some of its dependencies."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from mvnfetch.base.exceptions import MvnFetchException
from mvnfetch.config import Config
from mvnfetch.download import ArtifactDownload, DownloadRequest
from mvnfetch.init.logging import initialize_logging
from mvnfetch.resolve.context import ResolutionContext
from mvnfetch.resolve.coordinate import ArtifactCoordinate, InvalidCoordinateString
from mvnfetch.resolve.maven import MavenRepositoryResolver
from mvnfetch.util.logging import LogLevel

logger = logging.getLogger(__name__)


def _property(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not key:
        raise argparse.ArgumentTypeError(f"Expected key=value, given {value!r}")
    # A bare `-Dfoo` defines foo as "true", as it does for Maven.
    return key, val if sep else "true"


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mvnfetch",
        description="Downloads a Maven artifact and optionally its dependencies.",
    )
    parser.add_argument(
        "coordinate",
        nargs="?",
        help="The artifact to download, as group:artifact[:packaging[:classifier]]:version.",
    )

    artifact = parser.add_argument_group("artifact")
    artifact.add_argument("--group", "-g", help="The group id of the artifact.")
    artifact.add_argument("--artifact", "-a", help="The artifact id of the artifact.")
    artifact.add_argument("--version", "-v", help="The version (or version range) to download.")
    artifact.add_argument("--packaging", default=None, help="The packaging type (default: jar).")
    artifact.add_argument("--classifier", default=None, help="The artifact classifier.")

    download = parser.add_argument_group("download")
    download.add_argument("--output-dir", "-o", default=None, help="Where to put the files.")
    download.add_argument(
        "--output-file-name", default=None, help="Rename the single downloaded file."
    )
    download.add_argument(
        "--unpack",
        action="store_const",
        const=True,
        default=None,
        help="Extract the downloaded archives instead of copying them.",
    )
    download.add_argument("--skip", action="store_true", help="Do nothing at all.")
    download.add_argument(
        "--dependency-depth",
        type=int,
        default=None,
        help="How many levels of transitive dependencies to download as well (default: 0).",
    )

    resolve = parser.add_argument_group("resolve")
    resolve.add_argument(
        "--config", action="append", default=[], help="A TOML config file; may be repeated."
    )
    resolve.add_argument(
        "--repository",
        action="append",
        default=[],
        help="A remote repository url, replacing the configured ones; may be repeated.",
    )
    resolve.add_argument("--local-repository", default=None, help="The local repository path.")
    resolve.add_argument(
        "--offline",
        action="store_const",
        const=True,
        default=None,
        help="Only use the local repository.",
    )
    resolve.add_argument(
        "--activate-profiles",
        "-P",
        action="append",
        default=[],
        help="Comma separated POM profile ids to activate.",
    )
    resolve.add_argument(
        "-D",
        dest="properties",
        action="append",
        default=[],
        type=_property,
        metavar="KEY=VALUE",
        help="A user property for POM interpolation and profile activation.",
    )

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "--level",
        "-l",
        choices=[level.value for level in LogLevel],
        default=LogLevel.INFO.value,
        help="The log level.",
    )
    logging_group.add_argument(
        "--print-stacktrace", action="store_true", help="Print stack traces on failure."
    )
    logging_group.add_argument("--no-color", action="store_true", help="Never colorize logs.")
    return parser


def _coordinate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> ArtifactCoordinate:
    explicit = (args.group, args.artifact, args.version)
    if args.coordinate:
        if any(explicit) or args.packaging or args.classifier:
            parser.error("Give either a coordinate or --group/--artifact/--version, not both.")
        try:
            return ArtifactCoordinate.from_coord_str(args.coordinate)
        except InvalidCoordinateString as e:
            parser.error(str(e))
    if not all(explicit):
        parser.error("A coordinate or all of --group, --artifact and --version are required.")
    return ArtifactCoordinate(
        group=args.group,
        artifact=args.artifact,
        version=args.version,
        packaging=args.packaging or "jar",
        classifier=args.classifier,
    )


def _resolution_context(config: Config, args: argparse.Namespace) -> ResolutionContext:
    context = ResolutionContext.from_config(
        config,
        local_repository=Path(args.local_repository) if args.local_repository else None,
        offline=args.offline,
    )
    if args.repository:
        context = context.with_remote_urls(tuple(args.repository))
    profiles = tuple(
        profile.strip()
        for arg in args.activate_profiles
        for profile in arg.split(",")
        if profile.strip()
    )
    return replace(
        context,
        active_profiles=context.active_profiles + profiles,
        user_properties={**context.user_properties, **dict(args.properties)},
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    coordinate = _coordinate(parser, args)

    with initialize_logging(
        LogLevel(args.level),
        print_stacktrace=args.print_stacktrace,
        use_color=False if args.no_color else None,
    ):
        if args.skip:
            logger.info("mvnfetch: download skipped")
            return 0
        try:
            config = Config.load_files(args.config)
            request = DownloadRequest.from_config(
                coordinate,
                config,
                output_dir=args.output_dir,
                output_file_name=args.output_file_name,
                unpack=args.unpack,
                dependency_depth=args.dependency_depth,
            )
            resolver = MavenRepositoryResolver(_resolution_context(config, args))
            ArtifactDownload(resolver).execute(request)
        except MvnFetchException as e:
            logger.error(str(e), exc_info=args.print_stacktrace)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
