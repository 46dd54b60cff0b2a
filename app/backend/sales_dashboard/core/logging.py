"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Route application and server logs to stdout with a single format."""

    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn").setLevel(resolved)
    logging.getLogger("uvicorn.access").setLevel(resolved)
    # SQL echo is controlled by DATABASE_ECHO, not by the app log level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
