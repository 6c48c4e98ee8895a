"""
Logging configuration
"""

import logging
import sys
from typing import Optional
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Merge steps and bulk loads issue large statements; the scheduler logs every tick
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "apscheduler")


def setup_logging(level: Optional[str] = None):
    """
    Configure the root logger once for the service and the scripts.

    ``level`` overrides ``settings.LOG_LEVEL``; an unknown name falls back to INFO.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger(__name__).info(f"Logging configured at {level_name} level")
