"""FastAPI dependency injection for the Knowledge Assistant.

Each dependency delegates to the composition root so the application shares
one store, one search service and one orchestrator. Tests replace these with
``app.dependency_overrides``.
"""

from ....composition import container
from ....core.services import DocumentStore, KnowledgeScheduler, KnowledgeSearchService, RagService


def get_document_store() -> DocumentStore:
    return container.get_document_store()


def get_search_service() -> KnowledgeSearchService:
    return container.get_search_service()


def get_rag_service() -> RagService:
    return container.get_rag_service()


def get_scheduler() -> KnowledgeScheduler:
    return container.get_scheduler()
