"""Pydantic models for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SearchFiltersModel(BaseModel):
    """Optional filters applied before scoring."""

    classification: str | None = Field(None, description="Exact classification, e.g. ミッション")
    category: str | None = Field(None, description="Exact category")
    good_bad_example: str | None = Field(None, description="Exact example marker, e.g. 良い例")
    remarks_keyword: str | None = Field(None, description="Substring of the remarks field")


class AskRequest(BaseModel):
    """Request model for asking a question."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="The question to answer",
        json_schema_extra={"example": "配信設定、OBSについて教えて"},
    )
    mode: Literal["lenient", "strict", "mission", "no_rag"] = Field(
        "lenient", description="Answer mode"
    )
    images: list[str] = Field(default_factory=list, description="Attached image URLs")
    button_type: str | None = Field(
        None, description="Entry point (lesson_question, sns_consultation, mission_submission, mention_direct)"
    )
    filters: SearchFiltersModel | None = None


class AnswerResponse(BaseModel):
    """Response model for an answered question."""

    answer: str = Field(..., description="The generated answer or an apology")
    question: str = Field(..., description="The original question asked")
    metadata: dict = Field(default_factory=dict, description="Retrieval and generation metadata")
    error_code: str | None = Field(None, description="Error code when the answer is an apology")


class SearchRequest(BaseModel):
    """Request model for a raw knowledge search."""

    query: str = Field(..., min_length=1, max_length=4000)
    max_results: int = Field(10, ge=1, le=100)
    min_score: float = Field(0.1, ge=0)
    top_k: int = Field(0, ge=0, le=100)
    filters: SearchFiltersModel | None = None


class MatchDetailModel(BaseModel):
    signal: str
    value: float
    note: str = ""


class SearchResultModel(BaseModel):
    """One ranked document."""

    source: str = Field(..., description="File name of the document")
    score: float = Field(..., ge=0, description="Relevance score")
    excerpt: str = Field(..., description="Query-centred excerpt")
    match_details: list[MatchDetailModel] = Field(default_factory=list)
    metadata: dict[str, str | None] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResultModel] = Field(default_factory=list)


class RebuildResponse(BaseModel):
    """Outcome of a knowledge base rebuild."""

    status: str = Field(..., description="built or no_sources")
    documents: int = 0
    failed_count: int = 0
    image_count: int = 0
    duration_seconds: float = 0.0


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    knowledge_base: dict = Field(default_factory=dict, description="Document store status")
    scheduler: dict | None = Field(None, description="Rebuild scheduler status")


class ErrorDetail(BaseModel):
    """Structured error detail information."""

    type: str = Field(..., description="Exception type name")
    code: str = Field(..., description="Error code (e.g., KA_KB_002)")
    message: str = Field(..., description="Human-readable error message")


class ErrorLocation(BaseModel):
    """Source location where error occurred."""

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(..., alias="class", description="Class name or <module>")
    method: str = Field(..., description="Method/function name")
    file: str = Field(..., description="Source file name")
    line: int = Field(..., description="Line number")
    timestamp: str | None = Field(None, description="When the error occurred")


class ErrorResponse(BaseModel):
    """Response model for structured errors.

    Example:
        {
            "error": {"type": "NotInitializedError", "code": "KA_KB_002", "message": "..."},
            "location": {"class": "RagService", "method": "answer", ...},
            "context": {"path": "/api/v1/search"},
            "stack_trace": ["Traceback...", ...]  # Only in debug mode
        }
    """

    error: ErrorDetail = Field(..., description="Error details including type, code, and message")
    location: ErrorLocation | None = Field(None, description="Source location of the error")
    context: dict | None = Field(None, description="Additional debugging context")
    cause: dict | None = Field(None, description="Underlying exception that caused this error")
    stack_trace: list[str] | None = Field(None, description="Stack trace (debug mode only)")
