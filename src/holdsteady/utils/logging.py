"""Logging setup for holdsteady.

Per-tick detail is logged at DEBUG, so a session at INFO only reports
lifecycle events: device opened/released, detector loaded, captures.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from holdsteady.config.settings import LoggingConfig

PACKAGE_LOGGER = "holdsteady"

# Libraries that log every request or frame at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the ``holdsteady`` logger and return it.

    Calling it again replaces the handlers installed earlier instead of
    stacking duplicates.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    level = getattr(logging, config.level.upper(), logging.INFO)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    package_logger.info("Logging initialized at %s level", config.level.upper())
    return package_logger
