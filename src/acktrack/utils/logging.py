"""Logging configuration for acktrack.

Every module logs through `logging.getLogger(__name__)`; applications call
`configure_logging` once at startup.
"""

import logging
import os
import sys


def configure_logging(level=None, format_string=None):
    """Configure logging for acktrack.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string for log messages
    """
    if level is None:
        level = os.environ.get("ACKTRACK_LOG_LEVEL", "INFO").upper()

    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    if format_string is None:
        if numeric_level == logging.DEBUG:
            format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        else:
            format_string = "%(asctime)s %(levelname)s: %(message)s"

    logging.basicConfig(
        level=numeric_level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Replace any existing configuration
    )

    logging.getLogger("redis").setLevel(logging.WARNING)

    logging.getLogger("acktrack").setLevel(numeric_level)
    if numeric_level == logging.DEBUG:
        logging.getLogger("acktrack.adapters").setLevel(logging.NOTSET)
    else:
        logging.getLogger("acktrack.adapters").setLevel(
            max(numeric_level, logging.WARNING)
        )


def get_logger(name):
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
