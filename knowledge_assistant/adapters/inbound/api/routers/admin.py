"""Knowledge base management endpoints."""

import logging

from fastapi import APIRouter, Depends

from .....core.services import DocumentStore
from ..deps import get_document_store
from ..models import ErrorResponse, RebuildResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.post(
    "/rebuild",
    response_model=RebuildResponse,
    responses={409: {"model": ErrorResponse, "description": "Rebuild already running"}},
)
def rebuild_knowledge_base(store: DocumentStore = Depends(get_document_store)) -> RebuildResponse:
    """Reload every content source and swap the corpus.

    Runs synchronously. A concurrent rebuild is rejected with 409.
    """
    logger.info("Manual knowledge base rebuild requested")
    result = store.rebuild()
    return RebuildResponse(
        status=result.status.value,
        documents=result.document_count,
        failed_count=result.failed_count,
        image_count=result.image_count,
        duration_seconds=result.duration_seconds,
    )
