"""Runtime infrastructure for tabscan.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Service endpoint resolution for remote extraction and local OCR

Usage:
    from tabscan.runtime import get_logger, resolve_processing_endpoints

    logger = get_logger(__name__)
    for url in resolve_processing_endpoints():
        print(url)
"""

from tabscan.runtime.endpoints import resolve_ocr_service_url, resolve_processing_endpoints
from tabscan.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from tabscan.runtime.paths import ProjectPaths, get_paths, reset_paths

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Paths
    "ProjectPaths",
    "get_paths",
    "reset_paths",
    # Endpoints
    "resolve_processing_endpoints",
    "resolve_ocr_service_url",
]
