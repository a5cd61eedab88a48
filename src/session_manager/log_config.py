"""Logging setup. The CLI calls configure_logging() once at startup.

Levels:
- DEBUG: parser details (non-JSON lines kept)
- INFO: backups written, saves, restores
- WARNING: failed saves and restores
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> None:
    """Route session_manager logs to stderr at the given level name."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    pkg_logger = logging.getLogger("session_manager")
    pkg_logger.handlers.clear()
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(numeric)
