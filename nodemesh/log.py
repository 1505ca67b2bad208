"""NodeMesh logging configuration.

Centralised logger setup. All modules import from here:
    from nodemesh.log import logger

Writes to ~/.nodemesh/nodemesh.log (rotating, 5 MB max, 3 backups).
Set NODEMESH_HOME to move the directory. Console output is suppressed so
the uvicorn access log stays readable.
"""

from __future__ import annotations

import logging
import os
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

_logger_lock = threading.Lock()


def get_home_dir() -> Path:
    """Return the NodeMesh home directory, creating it if needed."""
    override = os.environ.get("NODEMESH_HOME")
    home = Path(override) if override else Path.home() / ".nodemesh"
    home.mkdir(parents=True, exist_ok=True)
    return home


def _setup_logger() -> logging.Logger:
    """Configure and return the nodemesh logger."""
    log = logging.getLogger("nodemesh")

    with _logger_lock:
        if log.handlers:
            return log

        log.setLevel(logging.DEBUG)
        log.propagate = False

        try:
            log_path = get_home_dir() / "nodemesh.log"
            handler = RotatingFileHandler(
                str(log_path),
                maxBytes=5 * 1024 * 1024,  # 5 MB
                backupCount=3,
                encoding="utf-8",
            )
            handler.setLevel(logging.DEBUG)
            fmt = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s.%(funcName)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            handler.setFormatter(fmt)
            log.addHandler(handler)
        except Exception:
            # Read-only home (containers, CI): keep logging calls harmless
            import sys
            log.addHandler(logging.NullHandler())
            try:
                sys.stderr.write("nodemesh: WARNING: could not create log file, logging disabled\n")
            except Exception:
                pass

    return log


logger = _setup_logger()
