# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Logging configuration for ceph-test-runner."""

import logging
import sys
from enum import Enum

import errorhandler

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(threadName)s] %(name)s - %(message)s"


class VerbosityLevel(str, Enum):
    """Log levels selectable on the command line."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class _RunnerStreamHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler installed by ``configure_logging``."""


def configure_logging(
    level: VerbosityLevel | str,
    error_handler: errorhandler.ErrorHandler | None = None,
) -> None:
    """Configure the root logger for a run.

    Replaces a handler installed by a previous call, leaves other handlers
    (such as the one of the error handler) in place.

    Args:
        level: Minimum level of the emitted log records
        error_handler: Error handler tracking ERROR records, reset for the run
    """
    log_level = getattr(logging, VerbosityLevel(level).value)

    logger = logging.getLogger()
    for handler in list(logger.handlers):
        if isinstance(handler, _RunnerStreamHandler):
            logger.removeHandler(handler)

    handler = _RunnerStreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(log_level)

    if error_handler is not None:
        error_handler.reset()
