"""FastAPI application for the concept dictionary."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from concept_dictionary.api import (
    concept_classes_router,
    concept_datatypes_router,
    concepts_router,
    drugs_router,
    maintenance_router,
    proposals_router,
)
from concept_dictionary.core.config import settings
from concept_dictionary.core.database import close_db, init_db
from concept_dictionary.core.exceptions import (
    APIAuthenticationException,
    APIException,
    ConceptInUseException,
    ConceptsLockedException,
    ObjectNotFoundException,
)
from concept_dictionary.core.redis import close_redis, ping_redis

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Most specific first
EXCEPTION_STATUS: list[tuple[type[APIException], int]] = [
    (APIAuthenticationException, status.HTTP_403_FORBIDDEN),
    (ConceptsLockedException, status.HTTP_423_LOCKED),
    (ObjectNotFoundException, status.HTTP_404_NOT_FOUND),
    (ConceptInUseException, status.HTTP_409_CONFLICT),
]


def status_for_exception(exc: APIException) -> int:
    """HTTP status code for a dictionary exception."""
    for exc_type, status_code in EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Create tables in debug mode
    - Shutdown: Close database and Redis connections
    """
    startup_start = time.perf_counter()

    # Startup
    if settings.debug:
        await init_db()

    total_startup_ms = (time.perf_counter() - startup_start) * 1000
    logger.info(f"Server ready - total startup time: {total_startup_ms:.0f}ms")
    app.state.startup_time_ms = total_startup_ms

    yield

    # Shutdown
    close_redis()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="API for managing a clinical concept dictionary: concepts, drugs, sets, proposals and search.",
    version=VERSION,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    status_code = status_for_exception(exc)
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    content: dict[str, Any] = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, APIAuthenticationException):
        content["privileges"] = exc.privileges
    return JSONResponse(status_code=status_code, content=content)


# Include routers
app.include_router(concepts_router, prefix=settings.api_v1_prefix)
app.include_router(drugs_router, prefix=settings.api_v1_prefix)
app.include_router(concept_classes_router, prefix=settings.api_v1_prefix)
app.include_router(concept_datatypes_router, prefix=settings.api_v1_prefix)
app.include_router(proposals_router, prefix=settings.api_v1_prefix)
app.include_router(maintenance_router, prefix=settings.api_v1_prefix)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness probe).

    Returns service status and basic info for monitoring.
    Use /ready for readiness checks.
    """
    return {
        "status": "healthy",
        "service": "concept-dictionary",
        "version": VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, Any]:
    """Readiness check endpoint.

    Reports whether the job queue backend is reachable. The API itself
    serves requests without Redis; only queued maintenance jobs need it.
    """
    return {
        "status": "ready",
        "service": "concept-dictionary",
        "version": VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "startup_time_ms": getattr(app.state, "startup_time_ms", 0),
        "redis": ping_redis(),
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "Concept Dictionary API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }
