"""
Logging for the valuation engine.

Every module logs through a child of the ``appraisalcore`` logger, so one call
to ``setup_logging`` controls the whole pipeline: outlier scoring and price
adjustment at DEBUG, finished valuations and ignored AVM estimates at INFO,
failed valuations at WARNING.

Usage:
    from appraisalcore.logging_config import get_logger

    logger = get_logger(__name__)
    logger.debug("Scored %d comparables", len(comparables))
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from appraisalcore.config import get_config

PACKAGE_LOGGER = "appraisalcore"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False
_installed_handlers: List[logging.Handler] = []


def _build_handlers(level: int, log_file: Optional[str]) -> List[logging.Handler]:
    """Stdout handler plus an optional file handler, sharing one formatter."""
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def _remove_installed_handlers(package_logger: logging.Logger) -> None:
    """Detach and close the handlers added by ``setup_logging``."""
    while _installed_handlers:
        handler = _installed_handlers.pop()
        package_logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """Attach handlers to the ``appraisalcore`` logger.

    Args:
        level: Level name; defaults to ``APPRAISALCORE_LOG_LEVEL`` (INFO).
            Unknown names fall back to INFO.
        log_file: Optional file that receives a copy of every record;
            defaults to ``APPRAISALCORE_LOG_FILE``.
        force: Replace the handlers even if logging is already set up.

    Returns:
        The package logger.
    """
    global _logging_configured

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _logging_configured and not force:
        return package_logger

    config = get_config().logging
    numeric_level = getattr(logging, (level or config.level).upper(), logging.INFO)
    if log_file is None:
        log_file = config.log_file

    package_logger.setLevel(numeric_level)
    _remove_installed_handlers(package_logger)
    for handler in _build_handlers(numeric_level, log_file):
        package_logger.addHandler(handler)
        _installed_handlers.append(handler)

    # Valuation records stay out of the host application's root logger
    package_logger.propagate = False

    _logging_configured = True
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger under ``appraisalcore`` for a module, set up on first use."""
    if not _logging_configured:
        setup_logging()

    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"

    return logging.getLogger(name)


def reset_logging() -> None:
    """Drop the package handlers so the next call reconfigures from scratch."""
    global _logging_configured
    _logging_configured = False
    _remove_installed_handlers(logging.getLogger(PACKAGE_LOGGER))
