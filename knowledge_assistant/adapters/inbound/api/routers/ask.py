"""Question answering endpoint."""

import logging

from fastapi import APIRouter, Depends

from .....core.domain import AnswerMode, SearchFilters
from .....core.domain.exceptions import AssistantError, ValidationError
from .....core.services import RagService
from ....common.exception_handler import get_error_code, log_exception, user_message_for
from ..deps import get_rag_service
from ..models import AnswerResponse, AskRequest, ErrorResponse, SearchFiltersModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["ask"])


def to_filters(model: SearchFiltersModel | None) -> SearchFilters | None:
    if model is None:
        return None
    return SearchFilters(**model.model_dump())


@router.post(
    "/ask",
    response_model=AnswerResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid request"}},
)
def ask_question(
    request: AskRequest,
    rag: RagService = Depends(get_rag_service),
) -> AnswerResponse:
    """Answer a question from the knowledge base.

    Core failures (knowledge base not built, search or generation errors)
    do not produce an error status: the answer carries the apology text a
    chat user would see and ``error_code`` identifies the failure. Invalid
    questions are rejected with 400.
    """
    try:
        result = rag.answer(
            request.question,
            mode=AnswerMode(request.mode),
            images=list(request.images),
            filters=to_filters(request.filters),
            button_type=request.button_type,
        )
    except ValidationError:
        raise
    except AssistantError as e:
        log_exception(e, log=logger, level=logging.WARNING, extra_context={"mode": request.mode})
        return AnswerResponse(
            answer=user_message_for(e),
            question=request.question,
            metadata={"mode": request.mode, "rag_used": False},
            error_code=get_error_code(e),
        )

    return AnswerResponse(
        answer=result.text,
        question=request.question,
        metadata=result.metadata.to_dict(),
    )
