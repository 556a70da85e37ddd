"""
Structured logging setup for the catalog traversal project.
"""
import logging
import sys
from datetime import datetime
from typing import Optional

from config import settings

ROOT_LOGGER_NAME = "catalog_traversal"


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Set up structured logging with file and console handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Defaults to settings.LOG_LEVEL

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL

    # Create logger
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Clear any existing handlers
    logger.handlers.clear()

    # Log format
    log_format = logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(log_format)
    logger.addHandler(console_handler)

    # File handler
    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = settings.LOG_DIR / f"traversal_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)  # File gets all logs
    file_handler.setFormatter(log_format)
    logger.addHandler(file_handler)

    logger.info(f"Logging initialized. Log file: {log_file}")
    logger.debug(f"Log level: {log_level}")

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance nested under the project logger.

    Args:
        name: Logger name (usually the module's __name__)

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
