# wengert_ad/logger.py
import logging
from typing import Optional

from .config import get_config

PACKAGE_LOGGER = "wengert_ad"


def get_logger(level: Optional[str] = None) -> logging.Logger:
    """
    Return the package logger, attaching a stream handler on first use.
    Module loggers (`logging.getLogger(__name__)`) propagate to it.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        formatter = logging.Formatter('[%(asctime)s][%(levelname)s][%(name)s] %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    level_name = (level or get_config().log_level).upper()
    logger.setLevel(getattr(logging, level_name, logging.WARNING))
    return logger
