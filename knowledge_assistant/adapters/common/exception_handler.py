"""Exception handling utilities for consistent error formatting.

This module provides functions to format exceptions as structured JSON,
log them consistently, map them to HTTP status codes and pick the apology
text shown to chat users.
"""

import json
import logging
import traceback
from typing import Any

from ...core.domain.exceptions import AssistantError
from ...core.services.prompts import get_error_response

logger = logging.getLogger(__name__)


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Format any exception as structured JSON.

    Works with both AssistantError and standard Python exceptions.

    Args:
        exc: The exception to format.
        include_trace: If True, include full stack trace.
        extra_context: Additional context to include in output.

    Returns:
        Dictionary with structured error information.
    """
    if isinstance(exc, AssistantError):
        result = exc.to_dict(include_trace=include_trace)
        if extra_context:
            result.setdefault("context", {}).update(extra_context)
        return result

    tb = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    last_frame = tb[-1] if tb else None

    result: dict[str, Any] = {
        "error": {
            "type": type(exc).__name__,
            "code": "PYTHON_ERR",
            "message": str(exc),
        },
        "location": {
            "class": "<unknown>",
            "method": last_frame.name if last_frame else "<unknown>",
            "file": (
                last_frame.filename.split("\\")[-1].split("/")[-1] if last_frame else "<unknown>"
            ),
            "line": last_frame.lineno if last_frame else 0,
        },
    }

    if extra_context:
        result["context"] = extra_context

    if include_trace:
        result["stack_trace"] = [
            line.strip()
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__)
            if line.strip()
        ]

    return result


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log exception in structured JSON format.

    Args:
        exc: The exception to log.
        log: Logger instance to use (defaults to module logger).
        level: Logging level (default: ERROR).
        extra_context: Additional context to include.
    """
    log_instance = log or logger

    exc_data = format_exception_json(exc, include_trace=True, extra_context=extra_context)
    log_instance.log(level, json.dumps(exc_data, indent=2, ensure_ascii=False))


def get_error_code(exc: Exception) -> str:
    """Get the error code from an exception (e.g. "KA_KB_002" or "PYTHON_ERR")."""
    if isinstance(exc, AssistantError):
        return exc.error_code
    return "PYTHON_ERR"


def get_http_status_code(exc: Exception) -> int:
    """Map an exception to the HTTP status the API answers with.

    Assistant errors carry their own ``http_status``; plain Python
    exceptions fall back to a coarse mapping.
    """
    if isinstance(exc, AssistantError):
        return exc.http_status
    if isinstance(exc, ValueError):
        return 400
    if isinstance(exc, ConnectionError | TimeoutError):
        return 503
    return 500


def user_message_for(exc: Exception) -> str:
    """Pick the apology text shown to a chat user for a failure.

    Args:
        exc: The exception raised while answering.

    Returns:
        A Japanese apology message for the error kind.
    """
    kind = exc.apology_kind if isinstance(exc, AssistantError) else "generic"
    return get_error_response(kind)
