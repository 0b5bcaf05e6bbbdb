"""Process logging for the farm engine and its HTTP surface.

Player facing text lives in the session log; this module only configures the
standard library logger used for diagnostics.
"""
import logging
import os

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str = "farm") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(_level(os.getenv("LOG_LEVEL", "INFO")))
        logger.propagate = False
    return logger


def _level(name: str) -> int:
    lvl = logging.getLevelName(str(name).upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def set_level(level: str) -> None:
    """Apply a level to every logger created through get_logger."""
    lvl = _level(level)
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.handlers and not logger.propagate:
            logger.setLevel(lvl)
