"""Logging helpers for the cmdforge hierarchy."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional

_ROOT = "cmdforge"
_CONSOLE_FORMAT = "[cmdforge] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return ``cmdforge.<component>``, or the package root logger."""
    return logging.getLogger(f"{_ROOT}.{component}" if component else _ROOT)


def _level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the cmdforge logger.

    ``verbose`` wins over ``quiet``. Calling this again replaces the handlers
    installed by the previous call.
    """
    level = _level(verbose, quiet)
    root = get_logger()
    root.setLevel(level)
    root.propagate = False

    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()

    root.addHandler(_handler(logging.StreamHandler(stream), level, _CONSOLE_FORMAT))
    if log_file is not None:
        root.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), level, _FILE_FORMAT)
        )
    return root


__all__ = ["configure_logging", "get_logger"]
