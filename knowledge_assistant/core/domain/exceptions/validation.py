"""Request validation exceptions."""

from .base import AssistantError


class ValidationError(AssistantError):
    """Input validation failed."""

    error_code = "KA_VAL_001"
    http_status = 400


class EmptyQueryError(ValidationError):
    """Query cannot be empty or whitespace only."""

    error_code = "KA_VAL_002"


class QueryTooLongError(ValidationError):
    """Query exceeds maximum allowed length."""

    error_code = "KA_VAL_003"
    apology_kind = "context_length"
