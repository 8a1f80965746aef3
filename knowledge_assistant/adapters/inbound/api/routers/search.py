"""Raw knowledge search endpoint."""

from fastapi import APIRouter, Depends

from .....core.domain import SearchOptions
from .....core.domain.exceptions import NotInitializedError
from .....core.services import DocumentStore, KnowledgeSearchService
from ..deps import get_document_store, get_search_service
from ..models import ErrorResponse, MatchDetailModel, SearchRequest, SearchResponse, SearchResultModel
from .ask import to_filters

router = APIRouter(prefix="/api/v1", tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    responses={503: {"model": ErrorResponse, "description": "Knowledge base not built"}},
)
def search_knowledge(
    request: SearchRequest,
    search: KnowledgeSearchService = Depends(get_search_service),
    store: DocumentStore = Depends(get_document_store),
) -> SearchResponse:
    """Return ranked documents with their score breakdown."""
    if not store.is_initialized:
        raise NotInitializedError("Knowledge base has not been built yet")

    options = SearchOptions(
        max_results=request.max_results,
        min_score=request.min_score,
        top_k=request.top_k,
        filters=to_filters(request.filters),
    )
    results = search.search(request.query, options)
    return SearchResponse(
        query=request.query,
        results=[
            SearchResultModel(
                source=result.source,
                score=result.score,
                excerpt=result.excerpt,
                match_details=[
                    MatchDetailModel(signal=d.signal, value=d.value, note=d.note)
                    for d in result.match_details
                ],
                metadata=result.metadata,
            )
            for result in results
        ],
    )
