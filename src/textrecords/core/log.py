# log.py
# SPDX-License-Identifier: MIT
"""Logging for textrecords.

Readers and decoders log to children of the ``textrecords`` logger, at DEBUG
only: paths opened and closed with their record counts, zip entry changes,
container row-group counts and HDFS client creation. The package logger
carries a NullHandler, so nothing is printed until an application calls
:func:`configure_logging` or applies a ``LoggingConfig``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import IO, Iterator, Optional

__all__ = [
    "PACKAGE_LOGGER_NAME",
    "DEFAULT_FORMAT",
    "coerce_level",
    "get_logger",
    "configure_logging",
    "temp_level",
]

PACKAGE_LOGGER_NAME = "textrecords"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def coerce_level(level: int | str) -> int:
    """Turn a level name such as ``"debug"`` into its numeric value.

    Raises:
        ValueError: On a name the logging module does not define.
    """
    if isinstance(level, int):
        return level
    value = getattr(logging, str(level).upper(), None)
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return value


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``name``'s logger, or the package logger when omitted."""
    return logging.getLogger(name or PACKAGE_LOGGER_NAME)


def _stream_handler(logger: logging.Logger) -> Optional[logging.StreamHandler]:
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            return handler
    return None


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Optional[IO[str]] = None,
    fmt: str | None = None,
    datefmt: str | None = None,
    propagate: bool | None = None,
    logger_name: str = PACKAGE_LOGGER_NAME,
) -> logging.Logger:
    """Send a textrecords logger's output to a stream.

    Calling this again reuses the logger's stream handler instead of adding
    another one; a handler whose stream was closed is pointed at ``stream``,
    and an explicit ``fmt`` replaces its formatter.

    Args:
        level (int | str): Level or level name.
        stream (IO[str] | None): Destination; defaults to sys.stderr.
        fmt (str | None): Format string; ``DEFAULT_FORMAT`` for new handlers.
        datefmt (str | None): Date format for the formatter.
        propagate (bool | None): Whether records also reach ancestor
            loggers. None leaves propagation on, which pytest's caplog
            relies on.
        logger_name (str): Logger to configure.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = get_logger(logger_name)
    logger.setLevel(coerce_level(level))
    logger.propagate = True if propagate is None else bool(propagate)
    target = stream if stream is not None else sys.stderr

    handler = _stream_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(target)
        handler.setFormatter(logging.Formatter(fmt=fmt or DEFAULT_FORMAT, datefmt=datefmt))
        logger.addHandler(handler)
        return logger
    if getattr(handler.stream, "closed", False):
        handler.stream = target
    if fmt is not None:
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    return logger


@contextmanager
def temp_level(level: int | str, name: str | None = None) -> Iterator[logging.Logger]:
    """Set a logger's level for the duration of a ``with`` block.

    Handy for turning on reader DEBUG output around a single read.
    """
    logger = get_logger(name)
    old = logger.level
    logger.setLevel(coerce_level(level))
    try:
        yield logger
    finally:
        logger.setLevel(old)
