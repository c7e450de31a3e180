import logging
import sys

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logger(name: str = "news_aggregator") -> logging.Logger:
    """Configure and return the logger for the application."""
    logger = logging.getLogger(name)
    log_level = getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    # Only add handler if it doesn't already exist (avoid duplicate handlers)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def create_logger(module_name: str) -> logging.Logger:
    """Get a logger for a specific module under the news_aggregator namespace."""
    logger = configure_logger(f"news_aggregator.{module_name}")
    # Prevent log propagation to parent logger to avoid duplicates
    logger.propagate = False
    return logger


__all__ = ["configure_logger", "create_logger"]
