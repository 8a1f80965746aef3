"""FastAPI application for the Knowledge Assistant API."""

import logging
import os
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ....composition import container
from ....config import settings, setup_logging
from ....core.domain.exceptions import AssistantError
from ...common.exception_handler import (
    format_exception_json,
    get_http_status_code,
    log_exception,
)
from .routers import admin, ask, health, search

logger = logging.getLogger(__name__)

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"


def _initial_rebuild() -> None:
    try:
        result = container.get_document_store().rebuild()
        logger.info(f"Startup rebuild finished: {result.document_count} documents ({result.status.value})")
    except AssistantError as e:
        log_exception(e, log=logger, extra_context={"phase": "startup_rebuild"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the knowledge base in the background and start the scheduler."""
    setup_logging(settings.log_level, json_format=settings.log_json)
    logger.info("Knowledge Assistant API starting up...")
    logger.info("Debug mode: %s", "ENABLED" if DEBUG_MODE else "DISABLED")

    if settings.rebuild_on_startup:
        threading.Thread(target=_initial_rebuild, name="startup-rebuild", daemon=True).start()

    scheduler = container.get_scheduler() if settings.scheduler_enabled else None
    if scheduler:
        scheduler.start()

    yield

    if scheduler:
        scheduler.stop()
    logger.info("Knowledge Assistant API shutting down...")


app = FastAPI(
    title="Knowledge Assistant API",
    description=(
        "Knowledge-base question answering for a VTuber school. "
        "Keyword retrieval over curated documents with grounded answer generation."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(ask.router)
app.include_router(search.router)
app.include_router(admin.router)


# =============================================================================
# Global Exception Handlers
# =============================================================================


@app.exception_handler(AssistantError)
async def assistant_error_handler(request: Request, exc: AssistantError) -> JSONResponse:
    """Handle all AssistantError exceptions with structured JSON response.

    Args:
        request: The incoming request.
        exc: The AssistantError exception.

    Returns:
        JSONResponse with structured error details.
    """
    log_exception(exc, extra_context={"path": str(request.url.path), "method": request.method})

    return JSONResponse(
        status_code=get_http_status_code(exc),
        content=exc.to_dict(include_trace=DEBUG_MODE),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions with structured JSON response."""
    log_exception(exc, extra_context={"path": str(request.url.path), "method": request.method})

    return JSONResponse(
        status_code=get_http_status_code(exc),
        content=format_exception_json(exc, include_trace=DEBUG_MODE),
    )


__all__ = ["app"]
