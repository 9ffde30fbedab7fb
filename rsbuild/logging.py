"""Logging utilities for rsbuild commands.

Two channels are configured: the ``rsbuild`` hierarchy for the tool's own
progress messages, and ``rsbuild.console`` for compiler output, which is
written verbatim (stdout for echo, stderr for failures) so it can be read or
piped like the compiler's own output.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

_LOGGER_NAME = "rsbuild"
CONSOLE_LOGGER_NAME = f"{_LOGGER_NAME}.console"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the rsbuild hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure rsbuild loggers with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    _reset_handlers(logger)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[rsbuild] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    console = logging.getLogger(CONSOLE_LOGGER_NAME)
    # Compiler output is only emitted when it should be seen; the coordinator
    # decides that, not the log level.
    console.setLevel(logging.INFO)
    console.propagate = False
    _reset_handlers(console)
    for handler in _console_handlers():
        console.addHandler(handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)
        console.addHandler(file_handler)

    return logger


def _console_handlers() -> List[logging.Handler]:
    plain = logging.Formatter("%(message)s")

    echo = logging.StreamHandler(sys.stdout)
    echo.setLevel(logging.INFO)
    echo.addFilter(lambda record: record.levelno < logging.ERROR)
    echo.setFormatter(plain)

    failures = logging.StreamHandler(sys.stderr)
    failures.setLevel(logging.ERROR)
    failures.setFormatter(plain)
    return [echo, failures]


def _reset_handlers(logger: logging.Logger) -> None:
    # Avoid duplicate output when the CLI is invoked repeatedly in one process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


__all__ = ["CONSOLE_LOGGER_NAME", "configure_logging", "get_logger"]
