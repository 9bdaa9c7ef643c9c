"""Logging utilities."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as loguru_logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)

loguru_logger.configure(extra={"name": "linguini"})


def setup_logger(
    name: str = "linguini",
    level: str = "INFO",
    log_file: Optional[str] = None
) -> "LoguruWrapper":
    """
    Set up the loguru sinks.

    Args:
        name: Logger name bound into every record
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path

    Returns:
        Configured logger
    """
    loguru_logger.remove()

    loguru_logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            log_file,
            level=level.upper(),
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="1 week"
        )

    return get_logger(name)


def get_logger(name: str = "linguini") -> "LoguruWrapper":
    """Get a logger bound to a module name."""
    return LoguruWrapper(loguru_logger.bind(name=name))


class LoguruWrapper:
    """Wrapper for loguru to standard logging interface."""

    def __init__(self, logger):
        self._bound = logger
        self._logger = logger.opt(depth=1)

    def debug(self, msg, *args, **kwargs):
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self._logger.critical(msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        self._bound.opt(exception=True, depth=1).error(msg, *args, **kwargs)
