"""Logging setup for infraplan."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries whose DEBUG output drowns out per-node progress
NOISY_LOGGERS = ("urllib3", "requests")


def setup_logging(level: int = logging.INFO, format_string: Optional[str] = None) -> logging.Logger:
    """
    Configure the `infraplan` logger tree to write to stderr.

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string (optional)

    Returns:
        The root `infraplan` logger
    """
    logging.basicConfig(
        level=level,
        format=format_string or LOG_FORMAT,
        stream=sys.stderr,
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("infraplan")
    logger.setLevel(level)
    return logger


def set_level(level: int) -> None:
    """Change the level of the infraplan logger tree (used by --verbose)."""
    logging.getLogger("infraplan").setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module, e.g. get_logger("execution.scheduler")."""
    return logging.getLogger(f"infraplan.{name}")
