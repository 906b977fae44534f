"""
Logging setup for the tracker API.

Stdout by default (Gunicorn / container platforms capture it); a rotating
file handler is added when LOG_FILE is configured.
"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def setup_logging(
    level: str = "INFO",
    log_file: str = "",
    max_bytes: int = 10_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured:
        return root

    formatter = logging.Formatter(LOG_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if log_file:
        Path(log_file).parent.mkdir(exist_ok=True, parents=True)
        handler = RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)

    _configured = True
    return root
