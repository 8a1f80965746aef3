"""Domain models for the Knowledge Assistant.

Models are organized by domain area:

- document: ImageDescriptor, SourceDescriptor, Document, MatchDetail, SearchResult
- knowledge: store state, search options, gate assessment and RAG answers
- source_kind: SourceKind and URL classification

All models are re-exported here for convenient importing:

    from knowledge_assistant.core.domain import Document, SearchResult, SourceKind
"""

from .document import Document, ImageDescriptor, MatchDetail, SearchResult, SourceDescriptor
from .knowledge import (
    AnswerMetadata,
    AnswerMode,
    Assessment,
    BuildResult,
    BuildStatus,
    LoadedContent,
    RagAnswer,
    RagConfig,
    SearchFilters,
    SearchOptions,
    StoreStatus,
)
from .source_kind import SourceKind, classify_source

__all__ = [
    # Document models
    "Document",
    "ImageDescriptor",
    "MatchDetail",
    "SearchResult",
    "SourceDescriptor",
    # Knowledge base models
    "BuildResult",
    "BuildStatus",
    "LoadedContent",
    "StoreStatus",
    "SearchFilters",
    "SearchOptions",
    # RAG models
    "Assessment",
    "AnswerMode",
    "AnswerMetadata",
    "RagAnswer",
    "RagConfig",
    # Source kinds
    "SourceKind",
    "classify_source",
]
