import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from . import config


_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def setup_logging() -> logging.Logger:
    """Set up the `wifishare` logger and route uvicorn loggers to the same handlers."""
    logger = logging.getLogger("wifishare")
    logger.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)

    if not config.LOG_ENABLED:
        logger.handlers.clear()
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        for name in _UVICORN_LOGGERS:
            ul = logging.getLogger(name)
            ul.handlers.clear()
            ul.propagate = False
            ul.setLevel(logging.CRITICAL)
        return logger

    if logger.handlers and not all(isinstance(h, logging.NullHandler) for h in logger.handlers):
        return logger
    logger.handlers.clear()

    os.makedirs(config.DATA_DIR, exist_ok=True)
    level = logging.DEBUG if config.DEBUG else logging.INFO
    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    file_handler = RotatingFileHandler(config.LOG_FILE, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(fmt)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    console = None
    if config.CONSOLE_LOG:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(fmt)
        console.setLevel(level)
        logger.addHandler(console)

    for name in _UVICORN_LOGGERS:
        ul = logging.getLogger(name)
        ul.handlers.clear()
        ul.propagate = False
        ul.setLevel(level)
        ul.addHandler(file_handler)
        if console is not None:
            ul.addHandler(console)

    return logger


log = setup_logging()


def reload_logging() -> logging.Logger:
    """Reload logger level and handlers from current configuration."""
    logger = logging.getLogger("wifishare")
    for h in list(logger.handlers):
        try:
            h.close()
        except Exception:
            pass
    logger.handlers.clear()
    logger.propagate = True

    for name in _UVICORN_LOGGERS:
        ul = logging.getLogger(name)
        ul.handlers.clear()
        ul.propagate = True

    return setup_logging()
