"""Loguru sink setup for the worker process."""
from __future__ import annotations

import sys

from loguru import logger

from link_worker.app.config.settings import Settings


def configure_logging(settings: Settings) -> None:
    """Replace loguru's default sink with one stderr sink at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        serialize=settings.log_json,
        backtrace=False,
        diagnose=False,
    )
