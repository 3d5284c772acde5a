"""
Pulse Structured Logging
========================

Two output modes share the same set of structured fields:
- JSON lines for production log aggregation
- a single human-readable line for development, with the structured
  fields appended as key=value pairs

Structured fields are passed through ``extra=`` (see EXTRA_FIELDS) or
collected by the ``timed`` context manager around a pipeline stage.

Usage:
    from src.orchestrator.logging_config import configure_from_settings, timed

    configure_from_settings()
    with timed(logger, "group upload", group_by="Region", rows=len(rows)):
        ...
"""

import json
import logging
import logging.handlers
import os
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

# Record attributes promoted to structured fields
EXTRA_FIELDS = ("dataset_kind", "group_by", "group", "rows", "duration")

NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai", "uvicorn.access")


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in EXTRA_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

        {"ts": "...", "level": "INFO", "logger": "src.reviews.grouping", "msg": "...", "rows": 120}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(_extras(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Plain text line followed by the structured fields, if any."""

    def __init__(self):
        super().__init__(
            "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _extras(record)
        if fields:
            line += "  [" + " ".join(f"{k}={v}" for k, v in fields.items()) + "]"
        return line


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
):
    """
    Install the root handlers, replacing any existing ones.

    Args:
        level: Root log level name; unknown names fall back to INFO
        json_output: JSON lines instead of console lines
        log_file: Optional rotating log file, created with its directory
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept
    """
    formatter = JSONFormatter() if json_output else ConsoleFormatter()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8",
        )
        rotating.setFormatter(formatter)
        root.addHandler(rotating)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(level: Optional[str] = None):
    """setup_logging() from LOG_LEVEL / LOG_JSON / LOG_FILE; level overrides LOG_LEVEL."""
    from src.data.config import get_settings

    config = get_settings().logging
    setup_logging(
        level=level or config.level,
        json_output=config.json_logs,
        log_file=config.log_file,
    )


@contextmanager
def timed(logger: logging.Logger, message: str, **fields: Any) -> Iterator[Dict[str, Any]]:
    """
    Log ``message`` at INFO when the block completes, with its duration.

    Yields the field dict so the block can add fields it only learns
    while running (e.g. the number of groups built).
    """
    start = time.perf_counter()
    yield fields
    fields["duration"] = round(time.perf_counter() - start, 3)
    extra = {k: v for k, v in fields.items() if k in EXTRA_FIELDS}
    details = ", ".join(f"{k}={v}" for k, v in fields.items() if k not in EXTRA_FIELDS)
    logger.info(f"{message} ({details})" if details else message, extra=extra)
