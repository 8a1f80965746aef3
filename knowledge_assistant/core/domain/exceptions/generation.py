"""Completion provider exceptions."""

from .base import AssistantError


class GenerationError(AssistantError):
    """The completion provider failed to produce a response.

    Common causes:
    - Invalid API key or network issues
    - Content blocked by safety filters
    - Token limit exceeded
    """

    error_code = "KA_GEN_001"
    http_status = 502
    apology_kind = "ai_processing"


class LLMRateLimitError(GenerationError):
    """Rate limit still exceeded after the provider's bounded retries."""

    error_code = "KA_GEN_002"
    http_status = 429


class GenerationTimeoutError(GenerationError):
    """The completion call did not finish within its deadline."""

    error_code = "KA_GEN_003"
