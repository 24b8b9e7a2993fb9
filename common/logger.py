"""Central level-based logger (standard library `logging`).

Env:
- STOREBOX_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR|CRITICAL
- LOG_LEVEL: fallback when STOREBOX_LOG_LEVEL is unset (default: INFO)
"""

from __future__ import annotations

import logging
import os
from typing import Optional

ROOT_LOGGER_NAME = "storebox"


def _level_from_env() -> int:
    raw = (os.getenv("STOREBOX_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").upper().strip()
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger.

    The root logger is configured once per process; later calls only
    re-apply the level so tests can flip LOG_LEVEL between runs.
    """
    level = _level_from_env()
    root = logging.getLogger()
    if not getattr(root, "_storebox_configured", False):
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
        setattr(root, "_storebox_configured", True)
    root.setLevel(level)
    return logging.getLogger(name or ROOT_LOGGER_NAME)
