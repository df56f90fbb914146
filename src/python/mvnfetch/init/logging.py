# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import http.client
import logging
import sys
from contextlib import contextmanager
from logging import Formatter, LogRecord, StreamHandler
from typing import Callable, Iterator, TextIO

from colors import cyan, green, red, yellow

import mvnfetch.util.logging as mvnfetch_logging
from mvnfetch.util.logging import LogLevel

# Although logging supports the WARN level, its not documented and could conceivably be yanked.
# Setup a 'WARN' logging level name that maps to 'WARNING' to match the `warn` choice.
logging.addLevelName(logging.WARNING, "WARN")
logging.addLevelName(mvnfetch_logging.TRACE, "TRACE")

_LEVEL_COLORS: dict[int, Callable[[str], str]] = {
    logging.CRITICAL: red,
    logging.ERROR: red,
    logging.WARNING: yellow,
    logging.INFO: green,
    logging.DEBUG: cyan,
    mvnfetch_logging.TRACE: cyan,
}


class _ExceptionFormatter(Formatter):
    """Possibly render the stacktrace and possibly give debug hints, based on the options."""

    def __init__(self, level: LogLevel, *, print_stacktrace: bool, use_color: bool) -> None:
        super().__init__("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S")
        self.level = level
        self.print_stacktrace = print_stacktrace
        self.use_color = use_color

    def formatMessage(self, record: LogRecord) -> str:
        if self.use_color:
            colorize = _LEVEL_COLORS.get(record.levelno)
            if colorize:
                record = logging.makeLogRecord(record.__dict__)
                record.levelname = colorize(record.levelname)
        return super().formatMessage(record)

    def formatException(self, exc_info):
        stacktrace = super().formatException(exc_info) if self.print_stacktrace else ""

        debug_instructions = []
        if not self.print_stacktrace:
            debug_instructions.append("--print-stacktrace for more error details")
        if self.level not in {LogLevel.DEBUG, LogLevel.TRACE}:
            debug_instructions.append("-ldebug for more logs")
        debug_instructions = (
            f"Use {' and/or '.join(debug_instructions)}." if debug_instructions else ""
        )
        return f"{stacktrace}\n\n{debug_instructions}".strip("\n")


@contextmanager
def initialize_logging(
    level: LogLevel,
    *,
    print_stacktrace: bool = False,
    use_color: bool | None = None,
    stream: TextIO | None = None,
) -> Iterator[logging.Handler]:
    """Installs a root logging handler writing to `stream` (stderr by default).

    Handlers installed before this call are removed for the duration of the block and restored
    afterward. When `use_color` is None, color is used if the stream is a TTY.
    """
    stream = stream or sys.stderr
    if use_color is None:
        use_color = hasattr(stream, "isatty") and stream.isatty()

    def trace_fn(self, message, *args, **kwargs):
        if self.isEnabledFor(LogLevel.TRACE.level):
            self._log(LogLevel.TRACE.level, message, *args, **kwargs)

    logging.Logger.trace = trace_fn  # type: ignore[attr-defined]
    logger = logging.getLogger(None)
    original_level = logger.level

    # Remove existing handlers, and restore them afterward.
    handlers = tuple(logger.handlers)
    for existing in handlers:
        logger.removeHandler(existing)

    handler = StreamHandler(stream)
    handler.setFormatter(
        _ExceptionFormatter(level, print_stacktrace=print_stacktrace, use_color=use_color)
    )
    try:
        # This routes warnings through our loggers instead of straight to raw stderr.
        logging.captureWarnings(True)
        logger.addHandler(handler)
        level.set_level_for(logger)

        if logger.isEnabledFor(LogLevel.TRACE.level):
            http.client.HTTPConnection.debuglevel = 1
            for name in ("urllib3", "requests.packages.urllib3"):
                requests_logger = logging.getLogger(name)
                LogLevel.TRACE.set_level_for(requests_logger)
                requests_logger.propagate = True

        yield handler
    finally:
        logging.captureWarnings(False)
        http.client.HTTPConnection.debuglevel = 0
        logger.removeHandler(handler)
        for original in handlers:
            logger.addHandler(original)
        logger.setLevel(original_level)
