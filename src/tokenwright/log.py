"""Logging setup shared by the CLI entry points."""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once per process.

    Operator-facing output goes through click; log records are diagnostics,
    so the default level is WARNING.
    """
    level = (level or os.getenv("TOKENWRIGHT_LOG_LEVEL", "WARNING")).upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("tokenwright").setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(logging.getLevelName(level), logging.WARNING))
