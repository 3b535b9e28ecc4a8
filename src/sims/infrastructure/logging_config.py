"""Logging setup for the CLI process."""

from __future__ import annotations

import logging

from sims.infrastructure.config import Settings


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=settings.log_format)
    logging.getLogger("sims").setLevel(level)
