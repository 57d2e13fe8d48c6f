"""
Logging setup for the order service.

Every module logs through ``get_logger(__name__)``; ``setup_logging()`` is
called once by the application on startup and writes to stdout so container
runtimes pick the output up.
"""

import logging
import sys

from core.config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Log level name; defaults to ``settings.LOG_LEVEL``.
    """
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce verbosity from external libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
