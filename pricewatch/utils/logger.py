"""
Logger Utility

Creates module loggers that write to the console and to a rotating log file.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from pricewatch.config import LOG_LEVEL, LOG_PATH

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def create_logger(name: str) -> logging.Logger:
    """
    Create (or fetch) a configured logger.

    Args:
        name: Logger name, usually the module's __name__

    Returns:
        logging.Logger: Logger with console and file handlers attached once
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if LOG_PATH:
        log_dir = os.path.dirname(LOG_PATH)
        try:
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(LOG_PATH, maxBytes=5 * 1024 * 1024, backupCount=3)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"File logging disabled ({LOG_PATH}): {e}")

    return logger
