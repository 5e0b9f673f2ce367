"""FastAPI application for TuneForge."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from backend.api.routes import router
from backend.config import get_backend_settings
from backend.services.media_service import get_media_service
from tuneforge.core.exceptions import (
    AlreadyExistsError,
    AuthenticationError,
    AuthorizationError,
    ConcurrentModificationError,
    DependencyUnavailableError,
    NotFoundError,
    TuneForgeError,
    ValidationError,
)

# Configure logging to output to stdout for Cloud Run
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)

# Most specific first; the base class catches anything else from the domain
ERROR_STATUS: list[tuple[type[TuneForgeError], int]] = [
    (NotFoundError, 404),
    (AlreadyExistsError, 409),
    (ConcurrentModificationError, 409),
    (AuthorizationError, 403),
    (AuthenticationError, 401),
    (ValidationError, 422),
    (DependencyUnavailableError, 503),
    (TuneForgeError, 400),
]


def status_for(error: TuneForgeError) -> int:
    """HTTP status for a domain error."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 400


async def handle_domain_error(request: Request, exc: TuneForgeError) -> JSONResponse:
    """Translate a TuneForgeError into a JSON error response."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_backend_settings()
    get_media_service(settings).ensure_directories()
    logger.info(f"Starting TuneForge API ({settings.environment})")

    yield

    # Shutdown
    logger.info("Shutting down TuneForge API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_backend_settings()

    app = FastAPI(
        title="TuneForge API",
        description="Stream, organize and share music",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TuneForgeError, handle_domain_error)

    # Include API routes
    app.include_router(router, prefix="/api")

    # Stored uploads, addressed by song file_path and cover_art
    app.mount("/media", StaticFiles(directory=settings.media_root, check_dir=False), name="media")

    return app


app = create_app()
