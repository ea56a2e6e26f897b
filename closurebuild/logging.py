"""Logging utilities for closurebuild commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "closurebuild"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the closurebuild hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def trace(logger: logging.Logger, message: str, *args: object) -> None:
    """Emit a record at TRACE level (file listings and raw compiler flags)."""
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, message, *args)


def get_level() -> int:
    return logging.getLogger(_LOGGER_NAME).level


def set_level(level: int) -> None:
    """Switch the package log level, e.g. for a build that asks for tracing."""
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.level == level:
        return
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
    logger.debug("Set log level to %s", logging.getLevelName(level))


def configure_logging(
    *, verbose: bool = False, trace: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure root logger for closurebuild with console output and optional file sink."""
    if trace:
        level = TRACE
    else:
        level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[closurebuild] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["TRACE", "configure_logging", "get_level", "get_logger", "set_level", "trace"]
