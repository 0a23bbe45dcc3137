"""Logging setup."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger

DEFAULT_LOG_FILE = Path(__file__).parent / "data" / "worklog.log"


def setup_logging(level: str | None = None, log_file: Path | None = None, to_stderr: bool = False) -> None:
    """Initialise loguru sinks.

    Level and file default to WORKLOG_LOG_LEVEL and WORKLOG_LOG_FILE. The TUI
    owns the terminal, so stderr is off unless asked for.
    """
    level = (level or os.environ.get("WORKLOG_LOG_LEVEL") or "INFO").upper()
    if log_file is None:
        env_file = os.environ.get("WORKLOG_LOG_FILE")
        log_file = Path(env_file) if env_file else DEFAULT_LOG_FILE

    logger.remove()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(str(log_file), rotation="10 MB", retention="10 days", level=level)
    if to_stderr:
        logger.add(sys.stderr, level=level)
