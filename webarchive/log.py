"""Diagnostic logging for the webarchive command."""

import logging
import sys
from typing import IO, Optional

LOGGER_NAME = "webarchive"
LOG_FORMAT = "%(asctime)s webarchive: %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(silent: bool = False, stream: Optional[IO] = None,
                      level: int = logging.INFO) -> logging.Logger:
    """
    Point the package logger at stream (stderr by default), or mute it.

    Calling it again replaces the handler installed by a previous call.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if silent:
        logger.addHandler(logging.NullHandler())
    else:
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger
