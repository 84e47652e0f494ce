"""Centralized logging configuration for tabscan.

Usage:
    from tabscan.runtime import get_logger
    logger = get_logger(__name__)

Environment variables:
    TABSCAN_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR. Default: WARNING, so that
        library callers only see fallbacks and failures unless they opt in.
"""

import logging
import os
import sys

LOGGER_NAMESPACE = "tabscan"
DEFAULT_LOG_LEVEL = logging.WARNING

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_handler: logging.Handler | None = None


def _level_from_env() -> int:
    return _LEVELS.get(os.environ.get("TABSCAN_LOG_LEVEL", "").strip().upper(), DEFAULT_LOG_LEVEL)


def _formatter_for(level: int) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if level <= logging.DEBUG else LOG_FORMAT)


def configure_logging(level: int | None = None) -> None:
    """Attach a stderr handler to the tabscan logger namespace once.

    Args:
        level: Log level to use. If None, reads TABSCAN_LOG_LEVEL.
    """
    global _handler

    if _handler is not None:
        return

    if level is None:
        level = _level_from_env()

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(_formatter_for(level))

    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(level)
    namespace_logger.addHandler(_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the tabscan namespace.

    Args:
        name: Module name, typically __name__
    """
    configure_logging()
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def set_log_level(level: int) -> None:
    """Change the namespace log level at runtime (used by the CLI --verbose flag)."""
    configure_logging(level)
    logging.getLogger(LOGGER_NAMESPACE).setLevel(level)
    if _handler is not None:
        _handler.setFormatter(_formatter_for(level))
