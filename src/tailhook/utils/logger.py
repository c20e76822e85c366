from __future__ import annotations

import os
import sys
from typing import Optional

from loguru import logger


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(log_file, rotation="10 MB", retention=10, level=level.upper())


__all__ = ["logger", "setup_logging"]
