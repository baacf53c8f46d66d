"""Logging setup shared by all FlashQuiz modules."""

import logging
import os
import sys

from pythonjsonlogger import jsonlogger

TEXT_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(name: str = 'flashquiz') -> logging.Logger:
    """
    Get a configured logger.

    Handlers are attached once per logger name. Level and format come from
    LOG_LEVEL (default INFO) and LOG_FORMAT ('text' or 'json').

    Args:
        name: Logger name, usually the calling module's __name__

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_format = os.getenv('LOG_FORMAT', 'text').lower()

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    if log_format == 'json':
        formatter = jsonlogger.JsonFormatter(TEXT_FORMAT)
    else:
        formatter = logging.Formatter(TEXT_FORMAT)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger
