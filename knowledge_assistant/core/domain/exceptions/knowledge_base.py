"""Knowledge base (document store) exceptions."""

from .base import AssistantError


class KnowledgeBaseError(AssistantError):
    """Base error for document store operations."""

    error_code = "KA_KB_001"


class NotInitializedError(KnowledgeBaseError):
    """An operation needs a built corpus but no rebuild has been attempted yet.

    Recoverable: trigger a rebuild and retry.
    """

    error_code = "KA_KB_002"
    http_status = 503
    apology_kind = "initialization"


class RebuildInProgressError(KnowledgeBaseError):
    """A rebuild was requested while another one is still running."""

    error_code = "KA_KB_003"
    http_status = 409


class SourceListingError(KnowledgeBaseError):
    """The content-source list could not be read.

    The store keeps its previous documents when this happens.
    """

    error_code = "KA_KB_004"


class ContentLoadError(KnowledgeBaseError):
    """A single source failed to load during a rebuild.

    Recorded as a placeholder document; never fails the rebuild itself.
    """

    error_code = "KA_KB_005"
