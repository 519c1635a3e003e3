"""Stderr diagnostics for the detect service (loguru)."""

import sys
from loguru import logger
from core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "<level>{level: <8}</level> "
    "[{process}:{thread.name}] "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def setup_logging():
    """Send all service logs to stderr at ``settings.LOG_LEVEL``.
    
    Process and thread are included since requests are served from a
    worker thread pool.
    """
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=settings.LOG_LEVEL, colorize=True)
    return logger


log = setup_logging()
