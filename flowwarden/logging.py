"""Logging setup shared by every flowwarden command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional

ROOT_LOGGER = "flowwarden"

_CONSOLE_FORMAT = "[flowwarden] %(levelname)s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "[flowwarden:%(area)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _AreaFilter(logging.Filter):
    """Expose the logger name below ``flowwarden`` as ``%(area)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = ROOT_LOGGER + "."
        record.area = record.name[len(prefix):] if record.name.startswith(prefix) else "main"
        return True


def get_logger(area: str | None = None) -> logging.Logger:
    """Return the logger for ``area`` (e.g. ``"fixes.orphaned_reference"``)."""
    return logging.getLogger(f"{ROOT_LOGGER}.{area}" if area else ROOT_LOGGER)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Route flowwarden records to stderr (or ``stream``) and optionally a file.

    Verbose mode lowers the level to DEBUG and prefixes console lines with the
    emitting area. Calling this again replaces the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream)
    console.setLevel(level)
    console.addFilter(_AreaFilter())
    console.setFormatter(logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger"]
