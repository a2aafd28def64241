import logging

from app.core.config import settings
from pkg.log import logger as base_logger


def get_logger(name: str) -> logging.Logger:
    """Application logger, levelled from LOG_LEVEL."""
    return base_logger.get_logger(name, settings.LOG_LEVEL.upper())


# Example: logger = get_logger(__name__)
