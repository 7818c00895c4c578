from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_LEVEL_ENV = "MARKETPULSE_LOG_LEVEL"
LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """Replace loguru's default sink with the bot's stderr (and optional file) sinks."""
    resolved = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()

    logger.remove()
    logger.add(sys.stderr, level=resolved, format=LOG_FORMAT, backtrace=False)
    if log_file is not None:
        logger.add(
            log_file,
            level=resolved,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention=5,
            enqueue=True,
        )
    logger.debug("Logging configured at {} (file={})", resolved, log_file)
