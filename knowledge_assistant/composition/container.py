"""Composition root wiring adapters to the core services."""

from __future__ import annotations

import logging
from functools import lru_cache

from ..adapters.outbound.llm.gemini_adapter import GeminiCompletionAdapter
from ..adapters.outbound.sources.content_loader import HttpContentLoader
from ..adapters.outbound.sources.csv_source_lister import CsvSourceLister
from ..common.rate_limiter import RateLimiter
from ..config import settings
from ..core.domain.exceptions import MissingSourceListError
from ..core.services import (
    DocumentStore,
    KnowledgeScheduler,
    KnowledgeSearchService,
    RagService,
    RelevanceScorer,
)

logger = logging.getLogger(__name__)


@lru_cache
def get_source_lister() -> CsvSourceLister:
    location = settings.knowledge_sources_location
    if not location:
        raise MissingSourceListError(
            "No content-source list configured. Set KNOWLEDGE_SOURCES or KNOWLEDGE_SHEET_ID in .env"
        )
    logger.info(f"Initializing CsvSourceLister for {location}")
    return CsvSourceLister(location, timeout=settings.http_timeout_seconds)


@lru_cache
def get_content_loader() -> HttpContentLoader:
    return HttpContentLoader(timeout=settings.http_timeout_seconds)


@lru_cache
def get_document_store() -> DocumentStore:
    logger.info("Initializing DocumentStore...")
    lister = get_source_lister() if settings.knowledge_sources_location else None
    return DocumentStore(
        loader=get_content_loader(),
        lister=lister,
        fetch_delay_seconds=settings.fetch_delay_seconds,
    )


@lru_cache
def get_search_service() -> KnowledgeSearchService:
    config = settings.rag_config()
    scorer = RelevanceScorer(excerpt_length=config.excerpt_length, excerpt_lead=config.excerpt_lead)
    return KnowledgeSearchService(get_document_store(), scorer)


@lru_cache
def get_completion() -> GeminiCompletionAdapter:
    logger.info("Initializing GeminiCompletionAdapter...")
    return GeminiCompletionAdapter(
        api_key=settings.google_api_key,
        model=settings.llm_model,
        rate_limiter=RateLimiter(settings.llm_requests_per_minute),
        max_retries=settings.llm_max_retries,
        image_timeout=settings.http_timeout_seconds,
    )


@lru_cache
def get_rag_service() -> RagService:
    logger.info("Initializing RagService...")
    return RagService(
        store=get_document_store(),
        search=get_search_service(),
        completion=get_completion(),
        config=settings.rag_config(),
    )


@lru_cache
def get_scheduler() -> KnowledgeScheduler:
    return KnowledgeScheduler(
        get_document_store(),
        weekday=settings.scheduler_weekday,
        hour=settings.scheduler_hour,
        timezone=settings.scheduler_timezone,
    )
