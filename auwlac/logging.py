"""
Logging for the compiler stages and the command line.

Records may carry a `location` (`file:line:col`) so log lines about a source
position read like the diagnostics the CLI prints.
"""

import logging
from pathlib import Path
from typing import Optional

_LOGGER_NAME = "auwlac"
CONSOLE_FORMAT = "[auwlac] %(levelname)s %(location_prefix)s%(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(location_prefix)s%(message)s"


class _LocationFilter(logging.Filter):
    """Derives the `location_prefix` the formats use from an optional `location`."""

    def filter(self, record: logging.LogRecord) -> bool:
        location = getattr(record, "location", "")
        record.location_prefix = f"{location}: " if location else ""
        return True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the auwlac hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def log_diagnostic(logger: logging.Logger, diagnostic) -> None:
    """Records a diagnostic at debug level, prefixed with its source location."""
    logger.debug(
        "%s %s [%s]: %s",
        diagnostic.severity.value,
        diagnostic.kind.value,
        diagnostic.code,
        diagnostic.message,
        extra={"location": diagnostic.location},
    )


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(_LocationFilter())
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(*, verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Attach console (and optionally file) handlers to the auwlac logger."""
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    # The CLI may be invoked more than once in the same process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(), level, CONSOLE_FORMAT))
    if log_file is not None:
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT))
    return logger


__all__ = ["configure_logging", "get_logger", "log_diagnostic"]
