"""Health check endpoints."""

from fastapi import APIRouter, Depends

from .....core.services import DocumentStore, KnowledgeScheduler
from ..deps import get_document_store, get_scheduler
from ..models import HealthResponse

API_VERSION = "1.0.0"

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check."""
    return HealthResponse(status="healthy", version=API_VERSION)


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(
    store: DocumentStore = Depends(get_document_store),
    scheduler: KnowledgeScheduler = Depends(get_scheduler),
) -> HealthResponse:
    """Readiness check.

    Reports ``ready`` once the knowledge base has completed a rebuild and
    ``initializing`` before that. Never fails; the body carries the store
    status either way.
    """
    status = store.status()
    return HealthResponse(
        status="ready" if status.initialized else "initializing",
        version=API_VERSION,
        knowledge_base=status.to_dict(),
        scheduler=scheduler.status(),
    )
