"""Process-wide logging for the form service.

Level and the optional log file come from ``Settings``. Submitted field
values are never logged; request outcomes go through ``request_log``.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_LEVEL = logging.INFO
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3
# request.summary lines replace the uvicorn access log
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def get_log_level(raw_env: dict[str, str] | None = None) -> int:
    source = raw_env if raw_env is not None else os.environ
    raw = source.get("LOG_LEVEL", "").strip().upper()
    level = getattr(logging, raw, None) if raw else None
    return level if isinstance(level, int) else DEFAULT_LOG_LEVEL


def configure_logging(*, level: int = DEFAULT_LOG_LEVEL, log_file: Path | None = None) -> None:
    """Replace root handlers with stderr (plus a rotating file when given)."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
        )
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=_DATE_FORMAT, handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
