"""
Logging Configuration
=====================
Sets up the 'wallalign' logger for the CLI and for host applications.

Solver diagnostics (centroids, scale, per-marker residuals) are logged at DEBUG,
solved transforms at INFO and rejected marker sets at ERROR. Output goes to
stderr so the CLI can print the calibration payload on stdout.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "wallalign"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def resolve_level(level: Union[int, str]) -> int:
    """Accept a logging level as an int or a name such as 'debug'."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Route 'wallalign' records to stderr and, optionally, to a file.

    Calling it again replaces the handlers instead of stacking them.

    Args:
        level: Threshold as an int (logging.DEBUG) or a name ("debug").
        log_file: Optional path; the file is overwritten on each run.

    Returns:
        The configured package logger.
    """
    level = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(f"Logging initialized at {logging.getLevelName(level)}")
    return logger
