"""Logging setup for the viewer process.

Everything under the ``arkview`` logger and uvicorn's request log share one
stderr handler, in either a readable text layout or JSON lines. Poll ticks
pass ``extra={"sequence": n}``; both formats surface that number so a
skipped or stale tick can be matched to the request that produced it.

Usage:
    configure_logging(config.log_level, config.log_format)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

# Loggers that write through the viewer's handler
VIEWER_LOGGERS = ("arkview", "uvicorn.access")

# Levels whose records carry their source location
_LOCATED_LEVELS = (logging.DEBUG, logging.ERROR, logging.CRITICAL)


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, UTC)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL [logger] message`` with ``seq=N`` for poll ticks."""

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{_timestamp(record):%H:%M:%S}.{int(record.msecs):03d} "
            f"{record.levelname:8s} [{record.name.removeprefix('arkview.')}] "
            f"{record.getMessage()}"
        )
        sequence = getattr(record, "sequence", None)
        if sequence is not None:
            line += f" seq={sequence}"
        if record.levelno in _LOCATED_LEVELS:
            line += f" ({record.filename}:{record.lineno})"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        sequence = getattr(record, "sequence", None)
        if sequence is not None:
            entry["sequence"] = sequence
        if record.levelno in _LOCATED_LEVELS:
            entry["source"] = {"file": record.pathname, "line": record.lineno}
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: int | str = logging.INFO,
    format_type: str = "text",
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach the viewer's handler to the arkview and uvicorn access loggers.

    Calling it again replaces the handler rather than adding a second one.

    Args:
        level: Level name or number applied to both loggers.
        format_type: 'json' for JSON lines, anything else for text.
        stream: Output stream, stderr by default.

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if format_type == "json" else TextFormatter())

    for name in VIEWER_LOGGERS:
        target = logging.getLogger(name)
        target.handlers.clear()
        target.addHandler(handler)
        target.setLevel(level)
        target.propagate = False

    logging.getLogger("arkview").debug(
        "Logging configured: level=%s, format=%s", level, format_type
    )
    return handler
