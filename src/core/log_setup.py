"""Loguru sink configuration shared by the CLI and the API."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from config import get_settings


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Replace the default sink with stderr (and an optional rotating file)."""
    settings = get_settings()
    level = level or settings.log_level
    log_file = log_file if log_file is not None else settings.log_file

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, rotation="10 MB", retention=5, encoding="utf-8")
