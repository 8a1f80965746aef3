"""Knowledge base state, search options and RAG answer models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .document import Document, ImageDescriptor


class BuildStatus(Enum):
    """Outcome of a completed rebuild attempt."""

    BUILT = "built"
    NO_SOURCES = "no_sources"


@dataclass
class LoadedContent:
    """Text and images extracted from one source."""

    content: str
    images: list[ImageDescriptor] = field(default_factory=list)


@dataclass
class BuildResult:
    """Summary of a rebuild pass.

    Attributes:
        status: ``built`` or ``no_sources``.
        documents: The corpus published by the pass, in list order. A
            ``no_sources`` pass reports the corpus it kept.
        failed_count: Sources that produced an error placeholder.
        image_count: Images flattened across all documents.
        duration_seconds: Wall-clock time of the pass.
    """

    status: BuildStatus
    documents: tuple[Document, ...] = ()
    failed_count: int = 0
    image_count: int = 0
    duration_seconds: float = 0.0

    @property
    def document_count(self) -> int:
        return len(self.documents)


@dataclass
class StoreStatus:
    """Read-only view of the document store state."""

    initialized: bool
    document_count: int
    image_count: int
    last_build_time: datetime | None
    rebuilding: bool
    images_by_source: dict[str, int] = field(default_factory=dict)
    total_characters: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "initialized": self.initialized,
            "document_count": self.document_count,
            "image_count": self.image_count,
            "last_build_time": self.last_build_time.isoformat() if self.last_build_time else None,
            "rebuilding": self.rebuilding,
            "images_by_source": dict(self.images_by_source),
            "total_characters": self.total_characters,
        }


@dataclass
class SearchFilters:
    """Exact-match filters applied before scoring.

    Unset fields do not filter. ``remarks_keyword`` is a substring match
    on the remarks column.
    """

    classification: str | None = None
    category: str | None = None
    good_bad_example: str | None = None
    remarks_keyword: str | None = None

    def matches(self, document: Document) -> bool:
        if self.classification and document.classification != self.classification:
            return False
        if self.category and document.category != self.category:
            return False
        if self.good_bad_example and document.good_bad_example != self.good_bad_example:
            return False
        if self.remarks_keyword and self.remarks_keyword not in (document.remarks or ""):
            return False
        return True


@dataclass
class SearchOptions:
    """Options for a knowledge search.

    Attributes:
        max_results: Result count cap.
        min_score: Inclusive score threshold.
        top_k: Alternative result cap; the larger of the two wins.
        filters: Optional pre-scoring filters.
    """

    max_results: int = 10
    min_score: float = 0.1
    top_k: int = 0
    filters: SearchFilters | None = None

    @property
    def limit(self) -> int:
        return max(self.max_results, self.top_k)


@dataclass
class Assessment:
    """Whether the retrieved results are good enough to answer from."""

    can_answer: bool
    reason: str
    confidence: float = 0.0
    relevant_count: int = 0


class AnswerMode(Enum):
    """How an answer was (or should be) produced.

    Attributes:
        LENIENT: Knowledge-augmented answer that may fall back on general knowledge.
        STRICT: Answer only from the knowledge base, refuse otherwise.
        NO_RAG: Degraded mode without retrieval.
        GREETING: Fixed greeting reply without retrieval.
        MISSION: Submission review against mission documents.
    """

    LENIENT = "lenient"
    STRICT = "strict"
    NO_RAG = "no_rag"
    GREETING = "greeting"
    MISSION = "mission"

    @property
    def accepts_requests(self) -> bool:
        """Whether callers may ask for this mode. GREETING is only ever an outcome."""
        return self is not AnswerMode.GREETING


@dataclass
class AnswerMetadata:
    """Diagnostics attached to every answer."""

    mode: AnswerMode
    rag_used: bool = False
    refused: bool = False
    chunks_used: int = 0
    sources: list[str] = field(default_factory=list)
    average_similarity: float = 0.0
    max_similarity: float = 0.0
    context_length: int = 0
    images_used: int = 0
    user_images_used: int = 0
    document_images_used: int = 0
    assessment: Assessment | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "mode": self.mode.value,
            "rag_used": self.rag_used,
            "refused": self.refused,
            "chunks_used": self.chunks_used,
            "sources": list(self.sources),
            "average_similarity": self.average_similarity,
            "max_similarity": self.max_similarity,
            "context_length": self.context_length,
            "images_used": self.images_used,
            "user_images_used": self.user_images_used,
            "document_images_used": self.document_images_used,
        }
        if self.assessment is not None:
            data["assessment"] = {
                "can_answer": self.assessment.can_answer,
                "reason": self.assessment.reason,
                "confidence": self.assessment.confidence,
                "relevant_count": self.assessment.relevant_count,
            }
        if self.extra:
            data.update(self.extra)
        return data


@dataclass
class RagAnswer:
    """Answer text plus the metadata describing how it was produced."""

    text: str
    metadata: AnswerMetadata


@dataclass(frozen=True)
class RagConfig:
    """Tunable knobs of the RAG orchestrator."""

    lenient_max_results: int = 5
    lenient_min_score: float = 0.05
    strict_max_results: int = 5
    strict_min_score: float = 0.1
    top_k: int = 0
    answer_threshold: float = 0.3
    answer_min_results: int = 1
    max_context_length: int = 40000
    max_images: int = 5
    excerpt_length: int = 2000
    excerpt_lead: int = 100
    temperature: float = 0.5
    max_tokens: int = 3000
    timeout_seconds: float | None = 90.0
