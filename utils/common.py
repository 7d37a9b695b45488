"""Common utilities for ADB Wise.

Logging setup with per-session trace identifiers, plus the small text
helpers that turn raw adb output into user-facing messages.
"""

from __future__ import annotations

import datetime as dt
import logging
import os
import platform
import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator, Optional

from config.constants import LoggingConstants


_NO_TRACE = "-"
_current_trace: ContextVar[str] = ContextVar("adbwise_trace", default=_NO_TRACE)

_stale_logs_removed = False

_WHITESPACE_RE = re.compile(r"\s+")


class TraceIdFilter(logging.Filter):
    """Stamp each record with the trace id of the pairing session emitting it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _current_trace.get()
        return True


def generate_trace_id() -> str:
    return uuid.uuid4().hex[:12]


def get_trace_id() -> str:
    return _current_trace.get()


@contextmanager
def trace_id_scope(trace_id: Optional[str]) -> Iterator[None]:
    """Tag every log line emitted inside the block with ``trace_id``.

    Each asyncio task runs in its own context copy, so concurrent sessions
    keep their own identifiers.
    """
    token = _current_trace.set(trace_id or _NO_TRACE)
    try:
        yield
    finally:
        _current_trace.reset(token)


def _logs_dir() -> Path:
    if platform.system().lower() == "linux":
        data_home = os.environ.get("XDG_DATA_HOME")
        base = Path(data_home) if data_home else Path.home() / ".local" / "share"
        return base / "adbwise" / "logs"
    return Path.home() / ".adbwise_logs"


def _remove_stale_logs(logs_dir: Path) -> int:
    """Delete log files written on earlier days; runs once per process."""
    global _stale_logs_removed

    if _stale_logs_removed:
        return 0
    _stale_logs_removed = True

    prefix = LoggingConstants.LOG_FILE_PREFIX
    today = dt.date.today().strftime("%Y%m%d")
    removed = 0

    for path in logs_dir.glob(f"{prefix}*{LoggingConstants.LOG_FILE_SUFFIX}"):
        day = path.name[len(prefix):len(prefix) + 8]
        if not day.isdigit() or day == today:
            continue
        try:
            path.unlink()
            removed += 1
        except OSError:
            # A file held open by another process stays until a later run
            continue
    return removed


def _open_log_file(filename: str) -> logging.FileHandler:
    try:
        logs_dir = _logs_dir()
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logs_dir = Path.cwd() / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(logs_dir / filename, encoding="utf-8")


def get_logger(name: str = "adbwise") -> logging.Logger:
    """Return the named logger, attaching the file and console handlers once."""
    logger = logging.getLogger(name)
    if not any(isinstance(item, TraceIdFilter) for item in logger.filters):
        logger.addFilter(TraceIdFilter())

    if logger.handlers:
        return logger

    started = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    file_handler = _open_log_file(f"{LoggingConstants.LOG_FILE_PREFIX}{started}{LoggingConstants.LOG_FILE_SUFFIX}")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LoggingConstants.FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LoggingConstants.CONSOLE_LOG_FORMAT))

    for handler in (file_handler, console_handler):
        handler.addFilter(TraceIdFilter())
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)

    removed = _remove_stale_logs(Path(file_handler.baseFilename).parent)
    if removed:
        logger.info("Removed %s log file(s) from earlier days", removed)

    return logger


def set_log_level(level: str) -> None:
    """Apply a log level name to every project logger created so far."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        return
    for logger in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(logger, logging.Logger) and any(
            isinstance(item, TraceIdFilter) for item in logger.filters
        ):
            logger.setLevel(numeric)
            for handler in logger.handlers:
                if isinstance(handler, logging.FileHandler):
                    handler.setLevel(numeric)


def clean_output(value: Optional[str]) -> str:
    """Collapse all whitespace runs into single spaces and trim the result."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value.strip())


def first_clean_output(*values: Optional[str]) -> str:
    """Return the first non-empty cleaned value among the given outputs."""
    for value in values:
        cleaned = clean_output(value)
        if cleaned:
            return cleaned
    return ""


def with_reason(message: str, reason: str) -> str:
    """Append a diagnostic reason to a message when one is available."""
    return f"{message}: {reason}" if reason else message


__all__ = [
    "TraceIdFilter",
    "clean_output",
    "first_clean_output",
    "generate_trace_id",
    "get_logger",
    "get_trace_id",
    "set_log_level",
    "trace_id_scope",
    "with_reason",
]
