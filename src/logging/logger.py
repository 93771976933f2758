# src/logging/logger.py — v3
"""Console and file logging for translation runs.

Both formatters stamp each record with the per-task context (batch run,
source document, remote job, workflow stage) so that lines from items
processed concurrently can be told apart.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Literal

from doctranslator.logging.context import get_context

ROOT_LOGGER = "doctranslator"

_NOISY_LOGGERS = ("httpx", "httpcore")


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the item context under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            payload["context"] = context
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """``time [LEVEL] logger [source] (stage) - message`` lines for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        line = f"{_record_time(record):%Y-%m-%d %H:%M:%S} [{record.levelname:8s}] {record.name}"
        if ctx.source_id:
            line += f" [{ctx.source_id}]"
        if ctx.stage:
            line += f" ({ctx.stage})"
        line += f" - {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Logger below the package root; configured by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: Literal["json", "text"] = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """Route package logs to stderr and, optionally, a rotated file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" for machine-readable lines, "text" otherwise.
        log_file: Extra destination file; None keeps logging on stderr only.
        rotation: Size that triggers rotation of ``log_file`` (e.g. "10MB").
        retention: Rotated files kept next to ``log_file``.

    Returns:
        The configured package root logger.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from doctranslator.logging.handlers import create_rotating_handler

        handlers.append(create_rotating_handler(log_file, rotation=rotation, retention=retention))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root
