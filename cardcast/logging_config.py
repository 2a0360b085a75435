"""
Logging setup for cardcast.

Every module logs through logging.getLogger(__name__); this configures
the shared "cardcast" parent logger once at startup.
"""

import logging


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(module)s: %(message)s"


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure the cardcast logger with a console handler.

    Safe to call more than once; existing handlers are replaced.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger("cardcast")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    return logger
