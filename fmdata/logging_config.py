"""Logging setup for the fmdata namespace."""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "fmdata"


def setup_logging(
    level: str | int = "INFO",
    pretty: bool = False,
    console: Console | None = None,
    propagate: bool = False,
) -> logging.Logger:
    """Configure the ``fmdata`` logger.

    Existing handlers are cleared first so repeated calls never duplicate
    output.

    Args:
        level: Logging threshold, e.g. "DEBUG" or logging.INFO.
        pretty: Render through rich's RichHandler instead of a plain stream.
        console: Rich console to write to in pretty mode. Defaults to a new
            stderr console.
        propagate: Whether records also bubble up to the root logger.

    Returns:
        The configured ``fmdata`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)

    if logger.hasHandlers():
        logger.handlers.clear()

    if pretty:
        handler: logging.Handler = RichHandler(
            level=level,
            console=console or Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate

    logger.debug("fmdata logging initialized at level %s", level)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger in the fmdata namespace.

    Args:
        name: Usually ``__name__`` of the calling module. ``None`` returns the
            top-level ``fmdata`` logger.
    """
    return logging.getLogger(name or LOGGER_NAME)


# Silent until an application configures logging.
get_logger().addHandler(logging.NullHandler())
