"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

from .config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install the stdout handler once; later calls only adjust the level."""
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("planner").setLevel(resolved)
