"""
Logging setup for the API process.
"""
import logging

from coop_portal.settings import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Attach a stream handler to the package logger once and set its level."""
    logger = logging.getLogger("coop_portal")
    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
