"""Logging configuration for agrisk."""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Driver chatter that drowns out engine warnings at DEBUG.
NOISY_LOGGERS = ("pymongo", "pymongo.topology", "pymongo.connection")


def setup_logging(level: str | None = None) -> None:
    """Route ``agrisk.*`` loggers to stderr.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR).
               Falls back to AGRISK_LOG_LEVEL, then WARNING so the
               per-assessment INFO lines stay out of CLI output.
    """
    log_level = level or os.environ.get("AGRISK_LOG_LEVEL", "WARNING")
    resolved = getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
