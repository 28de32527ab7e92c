"""Logging setup for applications embedding polystore."""

import logging
import sys

LOGGER_NAME = "polystore"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to the ``polystore`` logger.

    Safe to call more than once; the handler is only added the first time.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(handler)

    return logger
