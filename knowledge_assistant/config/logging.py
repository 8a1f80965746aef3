"""Logging setup for the Knowledge Assistant.

Services attach structured fields to their records through ``extra=``
(rebuild counts, search scores, failed sources). Both formatters emit them:
the JSON formatter as a ``fields`` object, the text formatter as trailing
``key=value`` pairs.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

from ..core.domain.exceptions import AssistantError

ROOT_LOGGER_NAME = "knowledge_assistant"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(module)s:%(funcName)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request at INFO
QUIET_LOGGERS = ("urllib3", "httpx", "google_genai")

_RESERVED_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the fields a caller attached to a record with ``extra=``."""
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS}


class JSONExceptionFormatter(logging.Formatter):
    """One JSON object per record.

    Assistant errors in ``exc_info`` are serialized with their error code
    and raise location instead of a bare traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "function": record.funcName,
                "line": record.lineno,
            },
        }

        fields = record_fields(record)
        if fields:
            entry["fields"] = fields

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            if isinstance(exc, AssistantError):
                entry["exception"] = exc.to_dict(include_trace=True)
            else:
                entry["exception"] = {
                    "type": type(exc).__name__,
                    "message": str(exc),
                    "traceback": self.formatException(record.exc_info),
                }

        return json.dumps(entry, ensure_ascii=False, default=str)


class KeyValueFormatter(logging.Formatter):
    """Human-readable lines with the structured fields appended."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        if not fields:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in fields.items())
        # Keep a traceback (if any) below the fields
        head, sep, tail = line.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """Configure the package logger.

    Safe to call more than once; handlers are replaced, not stacked.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional file that receives the same records.
        json_format: Emit JSON lines instead of text.

    Returns:
        The ``knowledge_assistant`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter: logging.Formatter = JSONExceptionFormatter() if json_format else KeyValueFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
