"""Core services: retrieval, scoring and answer orchestration."""

from .answerability import AnswerabilityGate
from .document_store import DocumentStore
from .knowledge_search import KnowledgeSearchService
from .mission_review import MissionReviewService
from .rag_service import RagService
from .relevance_scorer import RelevanceScorer
from .scheduler import KnowledgeScheduler
from .tokenizer import tokenize

__all__ = [
    "AnswerabilityGate",
    "DocumentStore",
    "KnowledgeScheduler",
    "KnowledgeSearchService",
    "MissionReviewService",
    "RagService",
    "RelevanceScorer",
    "tokenize",
]
