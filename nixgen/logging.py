"""Logging setup for the nixgen CLI and service."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "nixgen"
_CONSOLE_FORMAT = "[nixgen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``nixgen.<name>``, or the ``nixgen`` logger itself."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Send nixgen records to stderr and, with ``log_file``, append them to that file.

    The file receives debug records whatever the console level is.
    """
    logger = reset_logging()
    console_level = logging.DEBUG if verbose else logging.INFO
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    level = console_level
    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)
        level = logging.DEBUG

    logger.setLevel(level)
    return logger


def reset_logging() -> logging.Logger:
    """Close and detach every handler so repeated runs do not duplicate output."""
    logger = logging.getLogger(_ROOT)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    return logger


__all__ = ["configure_logging", "get_logger", "reset_logging"]
