"""Logging setup for shot.

Log records go to stderr through Rich so that results printed on stdout
stay clean. The level is read from $SHOT_LOG (default: INFO).
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_ENV = "SHOT_LOG"
LOGGER_NAME = "shot"


def init_logging(level: str | None = None) -> logging.Logger:
    """Configure and return the package logger.

    Safe to call more than once; the previous handler is replaced.

    Args:
        level: Level name, defaults to $SHOT_LOG or INFO

    Returns:
        The configured 'shot' logger
    """
    level_name = (level or os.environ.get(LOG_ENV) or "INFO").upper()
    if not isinstance(logging.getLevelName(level_name), int):
        level_name = "INFO"

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level_name)
    logger.propagate = False
    return logger
