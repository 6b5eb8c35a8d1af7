"""
Logging configuration for the fishbone editor.

Modules log through ``logging.getLogger(__name__)``; this module attaches
handlers to the package logger once, at start-up. Two environment switches
apply when no explicit values are passed:

* ``FISHBONE_DEBUG=1`` lowers the level to DEBUG (geometry skips, drag
  transitions and pass scheduling become visible).
* ``FISHBONE_LOG_FILE=<path>`` also writes the log to that file.
"""
import logging
import os
import sys
from typing import Mapping, Optional

PACKAGE_LOGGER = "fishbone"
DEBUG_ENV = "FISHBONE_DEBUG"
LOG_FILE_ENV = "FISHBONE_LOG_FILE"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def level_from_env(environ: Optional[Mapping[str, str]] = None) -> int:
    environ = os.environ if environ is None else environ
    return logging.DEBUG if environ.get(DEBUG_ENV) == "1" else logging.INFO


def setup_logging(level: Optional[int] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``fishbone`` logger and return it.

    Args:
        level: Logging level; taken from ``FISHBONE_DEBUG`` when omitted.
        log_file: Extra log file; taken from ``FISHBONE_LOG_FILE`` when omitted.
    """
    if level is None:
        level = level_from_env()
    if log_file is None:
        log_file = os.environ.get(LOG_FILE_ENV) or None

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    # Calling this again replaces the handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging at %s%s", logging.getLevelName(level), f" (also to {log_file})" if log_file else "")
    return logger
