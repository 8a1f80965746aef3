"""Base exception classes for the Knowledge Assistant.

Each error class declares three things the outer layers need:

- ``error_code``: stable identifier shown in logs, API bodies and the CLI
- ``http_status``: status the API answers with
- ``apology_kind``: key of the apology text a chat user sees

Instances also record where they were raised, the underlying cause and
caller-supplied context, and serialize to a JSON-friendly dict.
"""

import inspect
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import FrameType
from typing import Any

UNKNOWN = "<unknown>"


@dataclass
class ExceptionContext:
    """Where an error was raised."""

    class_name: str
    method_name: str
    file_name: str
    line_number: int
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @classmethod
    def from_frame(cls, frame: FrameType | None) -> "ExceptionContext":
        if frame is None:
            return cls(UNKNOWN, UNKNOWN, UNKNOWN, 0)
        owner = frame.f_locals.get("self")
        return cls(
            class_name=type(owner).__name__ if owner is not None else "<module>",
            method_name=frame.f_code.co_name,
            file_name=Path(frame.f_code.co_filename).name,
            line_number=frame.f_lineno,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.class_name,
            "method": self.method_name,
            "file": self.file_name,
            "line": self.line_number,
            "timestamp": self.timestamp,
        }


class AssistantError(Exception):
    """Base exception for all Knowledge Assistant errors.

    Example:
        try:
            rows = self._read()
        except requests.RequestException as e:
            raise SourceListingError(
                "Failed to read the content-source list",
                cause=e,
                context={"location": self.location},
            ) from e
    """

    error_code: str = "KA_ERR_001"
    http_status: int = 500
    apology_kind: str = "generic"

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message (English, for logs).
            cause: The underlying exception, if this one wraps another.
            context: Extra key-value pairs for debugging, e.g. the URL.
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.extra_context = context or {}
        self.location = ExceptionContext.from_frame(self._raise_site())
        self.stack_trace = self._format_cause(cause)

    def _raise_site(self) -> FrameType | None:
        """First frame outside this error's own constructors."""
        frame = inspect.currentframe()
        # Subclasses may add their own __init__, so walk until `self` changes
        while frame is not None and frame.f_locals.get("self") is self:
            frame = frame.f_back
        return frame

    @staticmethod
    def _format_cause(cause: Exception | None) -> str | None:
        if cause is None or cause.__traceback__ is None:
            return None
        return "".join(traceback.format_exception(cause))

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Structured form for logs and API error bodies.

        Args:
            include_trace: Add the cause's traceback lines (debug mode).

        Returns:
            Dict with ``error`` and ``location``, plus ``context``,
            ``cause`` and ``stack_trace`` when present.
        """
        result: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.location.to_dict(),
        }
        if self.extra_context:
            result["context"] = self.extra_context
        if self.cause is not None:
            result["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        if include_trace and self.stack_trace:
            result["stack_trace"] = [line for line in self.stack_trace.splitlines() if line.strip()]
        return result
