"""
Logging for the engine.

Log records go to stderr so that stdout stays free for the JSON the
command-line script prints.
"""

import logging
import sys
from typing import Optional, TextIO

from assessment_engine.config import Config


def setup_logger(
    name: str,
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a single stream handler to the named logger.

    Args:
        name: Logger name (typically __name__)
        level: Level name, Config.LOG_LEVEL when omitted; unknown names mean INFO
        format_string: Record format, Config.LOG_FORMAT when omitted
        stream: Destination, sys.stderr when omitted

    Returns:
        The configured logger; a logger that already has handlers is returned as is
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    numeric_level = getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO)
    logger.setLevel(numeric_level)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(format_string or Config.LOG_FORMAT))
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger, set up on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger
