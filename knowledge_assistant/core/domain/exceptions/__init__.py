"""Custom exception hierarchy for the Knowledge Assistant.

Each exception includes:
- Error codes for quick identification
- Automatic capture of class, method, file, and line number
- Cause chaining for underlying exceptions
- JSON serialization for structured logging

Import from this package directly:

    from knowledge_assistant.core.domain.exceptions import AssistantError, NotInitializedError
"""

# Base classes
from .base import AssistantError, ExceptionContext

# Configuration exceptions
from .configuration import (
    ConfigurationError,
    MissingAPIKeyError,
    MissingSourceListError,
)

# Completion provider exceptions
from .generation import (
    GenerationError,
    GenerationTimeoutError,
    LLMRateLimitError,
)

# Document store exceptions
from .knowledge_base import (
    ContentLoadError,
    KnowledgeBaseError,
    NotInitializedError,
    RebuildInProgressError,
    SourceListingError,
)

# Retrieval exceptions
from .retrieval import RetrievalError

# Validation exceptions
from .validation import (
    EmptyQueryError,
    QueryTooLongError,
    ValidationError,
)

__all__ = [
    # Base
    "ExceptionContext",
    "AssistantError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "MissingSourceListError",
    # Knowledge base
    "KnowledgeBaseError",
    "NotInitializedError",
    "RebuildInProgressError",
    "SourceListingError",
    "ContentLoadError",
    # Retrieval
    "RetrievalError",
    # Generation
    "GenerationError",
    "LLMRateLimitError",
    "GenerationTimeoutError",
    # Validation
    "ValidationError",
    "EmptyQueryError",
    "QueryTooLongError",
]
