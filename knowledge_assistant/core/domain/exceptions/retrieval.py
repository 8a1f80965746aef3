"""Retrieval exceptions."""

from .base import AssistantError


class RetrievalError(AssistantError):
    """Search or store access failed unexpectedly."""

    error_code = "KA_RET_001"
    http_status = 503
    apology_kind = "no_relevant_content"
