# -*- coding: utf-8 -*-
"""Logging configuration using loguru.

The TUI owns the terminal, so the app logs to a file only; tests and
scripts may keep the stderr sink.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union
import sys

from loguru import logger


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    fmt: str = "<level>[{level.name}]</level> {message}",
    rotation: str = "5 MB",
    retention: str = "14 days",
) -> None:
    """Configure loguru with optional stderr and rotating file output."""
    logger.remove()
    if console:
        logger.add(sys.stderr, level=level, format=fmt)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}",
            rotation=rotation,
            retention=retention,
        )
