"""Logging configuration helpers."""

import logging

_LOGGER_NAME = "fiesta"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install one stream handler on the package logger.

    Calling it again only updates the level.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
