"""Structured logging setup for benchdiff.

Console messages share the ``benchdiff:`` prefix used for the tool's
error lines on stderr; with ``-v`` they also carry the level and the
emitting module.  An optional file handler always logs at DEBUG level.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "benchdiff"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "benchdiff: %(message)s"
_VERBOSE_CONSOLE_FORMAT = "benchdiff: %(levelname)s %(name)s: %(message)s"


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the root benchdiff logger.

    Args:
        verbose: If True, set console log level to DEBUG.
        quiet: If True, set console log level to WARNING. Ignored if *verbose* is True.
        log_file: If provided, add a file handler at DEBUG level to this path.

    Returns:
        The configured root logger for benchdiff.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Allow reconfiguration between CLI invocations in one process.
    logger.handlers.clear()

    console = logging.StreamHandler()
    console_format = _CONSOLE_FORMAT
    if verbose:
        console.setLevel(logging.DEBUG)
        console_format = _VERBOSE_CONSOLE_FORMAT
    elif quiet:
        console.setLevel(logging.WARNING)
    else:
        console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the benchdiff namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
