"""
Logging setup for AvatarSync.
"""

import logging
from typing import Optional, Union


LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(level: Union[str, int] = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger with console and optional file output.

    Args:
        level: Log level name or number
        log_file: Optional log file path

    Returns:
        The configured ``avatarsync`` logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger('avatarsync')
    logger.setLevel(level)

    # Replace handlers from a previous call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
