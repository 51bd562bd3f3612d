"""
Logging setup.

Configured once at process start; modules obtain loggers via get_logger().
"""

import logging
import sys
from typing import Optional

_configured = False


def setup_logging(config=None, level: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        config: Application Config (LOG_LEVEL / LOG_FORMAT are read from it)
        level: Explicit level overriding the configured one
    """
    global _configured

    log_level = level or (config.LOG_LEVEL if config else "INFO")
    log_format = (
        config.LOG_FORMAT if config else "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(log_format))
        root.addHandler(handler)
        _configured = True
    root.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))

    # Multipart parser is chatty at DEBUG
    logging.getLogger("python_multipart").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
