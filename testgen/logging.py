"""Logging utilities for testgen commands and the service."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "testgen"
_CONSOLE_FORMAT = "[testgen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a component logger under the testgen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Install console (stderr by default) and optional file handlers.

    Console output goes to stderr so that JSON written to stdout by the CLI
    stays machine readable. Repeat calls replace the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
