"""
Logging configuration for the webhook service.
"""
import logging
import sys
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(debug: Optional[bool] = None) -> logging.Logger:
    """
    Configure the ``vcswebhook`` logger.

    Parser modules log through child loggers (``vcswebhook.webhook.*``),
    so they share the handler installed here.

    Args:
        debug: Log at DEBUG level; defaults to ``settings.debug``
    """
    if debug is None:
        debug = settings.debug
    level = logging.DEBUG if debug else logging.INFO

    logger = logging.getLogger("vcswebhook")
    logger.setLevel(level)

    # Calling twice must not duplicate output
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    return logger


# Global logger instance
logger = setup_logging()
