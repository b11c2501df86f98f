import os
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logger(level: str | None = None) -> None:
    """Replace loguru's default sink with a stderr sink at ``LOG_LEVEL``."""
    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=resolved_level, colorize=True)
    logger.debug(f"Logger initialized with level={resolved_level}")
