"""
Logging Configuration — One stderr handler for the whole run.

Two output formats:
- text: ``12:34:56 INFO    [mirror.engine  ] [3] copied to destination a.txt``
- json: one object per line, with per-object context promoted to fields

Mirror components log per-object progress with
``extra={"object_key": ..., "ordinal": ...}``; the JSON formatter emits
those as top-level fields so a run can be filtered by key.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

## Usage

    from blobcopy.logging_config import setup_logging

    setup_logging()                    # from the environment
    setup_logging("DEBUG", "json")     # explicit (CLI flags win)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

CONTEXT_FIELDS = ("object_key", "ordinal", "store")
FORMATS = ("text", "json")

# Third-party loggers that drown out per-object progress at INFO
QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3")


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    {"ts": "...", "level": "...", "logger": "...", "message": "...",
     "object_key": "...", "ordinal": 3}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Coloured single-line records for a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool | None = None):
        super().__init__()
        self.color = sys.stderr.isatty() if color is None else color

    @staticmethod
    def _short_name(name: str) -> str:
        # blobcopy.mirror.engine -> mirror.engine
        parts = name.split(".")
        if parts[0] == "blobcopy" and len(parts) > 1:
            parts = parts[1:]
        return ".".join(parts)[-15:]

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:7}"
        if self.color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        line = f"{time_str} {level} [{self._short_name(record.name):15}] {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def resolve_settings(level: str | None = None, format_type: str | None = None) -> Tuple[int, str]:
    """
    Merge explicit settings with LOG_LEVEL / LOG_FORMAT.

    Unknown levels fall back to INFO and unknown formats to text.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    numeric = logging.getLevelName(level_name)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    fmt = (format_type or os.environ.get("LOG_FORMAT") or "text").lower()
    if fmt not in FORMATS:
        fmt = "text"
    return numeric, fmt


def setup_logging(level: str | None = None, format_type: str | None = None) -> logging.Handler:
    """
    Route all logging to a single stderr handler.

    Safe to call more than once; each call replaces the previous handler.

    Returns:
        The installed handler.
    """
    numeric, fmt = resolve_settings(level, format_type)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else HumanFormatter())
    handler.setLevel(numeric)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))

    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(numeric)}, format={fmt}"
    )
    return handler
