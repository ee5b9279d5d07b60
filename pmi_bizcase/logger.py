"""
Centralized logging configuration for pmi_bizcase
"""
import logging
import os
from datetime import datetime

LOG_LEVEL_ENV = "BIZCASE_LOG_LEVEL"
LOG_DIR_ENV = "BIZCASE_LOG_DIR"


def _level_from_env(default: int) -> int:
    name = (os.environ.get(LOG_LEVEL_ENV) or "").upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Create a configured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)
        level: Logging level used when BIZCASE_LOG_LEVEL is unset

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    level = _level_from_env(level)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    # Format: timestamp - module - level - message
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Optional file handler when a log directory is configured
    log_dir = os.environ.get(LOG_DIR_ENV)
    if log_dir and os.path.isdir(log_dir):
        file_handler = logging.FileHandler(
            os.path.join(log_dir, f'pmi_bizcase_{datetime.now().strftime("%Y%m%d")}.log')
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class LogContext:
    """Context manager for logging operation timing"""

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = (datetime.now() - self.start_time).total_seconds()
        if exc_type:
            self.logger.error(f"Failed: {self.operation} after {duration:.2f}s - {exc_val}")
        else:
            self.logger.info(f"Completed: {self.operation} in {duration:.2f}s")
        return False
