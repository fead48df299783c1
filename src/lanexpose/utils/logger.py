"""
Logging helpers built on loguru.

All modules obtain their logger through ``get_logger(__name__)``; the CLI
calls ``configure_logging`` once before any session starts.
"""

import sys

from loguru import logger as _logger

from lanexpose.models.enums import LogLevel

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]} | {message}"

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

_logger.configure(extra={"name": "lanexpose"})


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_file: str | None = None,
) -> None:
    """
    Replace loguru's default sink with lanexpose's console (and file) sinks.

    Args:
        level: Verbosity level, as a LogLevel or its string value.
        log_file: Optional path for an additional rotating log file.
    """
    level = LogLevel(level)
    loguru_level = _LEVEL_MAP[level]

    _logger.remove()
    _logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=loguru_level,
        backtrace=level == LogLevel.FULL,
        diagnose=level == LogLevel.FULL,
    )
    if log_file:
        _logger.add(
            log_file,
            format=FILE_FORMAT,
            level=loguru_level,
            rotation="10 MB",
            retention=3,
        )


def get_logger(name: str):
    """Return a loguru logger bound to ``name``."""
    return _logger.bind(name=name)
