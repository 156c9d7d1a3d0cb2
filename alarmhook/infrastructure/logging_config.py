import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] - %(message)s"
LOGGER_NAME = "alarmhook"
LOG_FILE = "alarmhook.log"
MAX_LOG_SIZE_BYTES = 10 * 1024 * 1024  # 10MB


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """Configure the application logger.

    Console output always goes to stderr. When ``log_dir`` is set, a rotating
    file handler is added as well. Calling this again replaces the handlers
    instead of stacking them.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE), maxBytes=MAX_LOG_SIZE_BYTES, backupCount=5
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
