"""
Logging configuration — one call at CLI startup.

main.py calls setup_logging() before any command runs; every module
logs through ``logging.getLogger(__name__)`` and inherits the handlers.

Level precedence:
    --debug / --verbose / --quiet  >  DEVBOX_LOG_LEVEL  >  INFO

Console lines always carry the severity, so a run's output shows what
was skipped, what degraded and what was fatal. DEVBOX_LOG_FILE adds a
full-detail file sink (its own level via DEVBOX_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import sys

_FMT_FILE = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Console format by threshold, most detailed first.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(levelname)-7s %(message)s", "%H:%M:%S"),
)
_CONSOLE_FALLBACK = ("[%(levelname)s] %(message)s", None)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with the devbox console/file setup.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ...).
        log_file: Optional path of a log file to append to.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # The root must let through whatever the chattiest handler wants.
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_FALLBACK
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; anything unrecognised is INFO."""
    if not level:
        return logging.INFO
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO
