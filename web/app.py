"""
FastAPI application for the Estatehub marketplace API.

Production deployment configuration via environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.errors import (
    GeocodingError,
    ImageUploadError,
    InvalidTransitionError,
    NotAuthenticatedError,
    NotFoundError,
    StoreError,
    SubmissionInProgressError,
    ValidationError,
)
from core.marketplace import GeocodingClient, ImageStorage, RecordStore, SessionRepository
from core.stepper import DraftRegistry
from utils.config import Config
from web.api_routes import router as api_router


logger = logging.getLogger(__name__)


# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

UPLOADS_URL = "/uploads"

VERSION = "0.1.0"


# =============================================================================
# Exception Handlers
# =============================================================================


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(exc.to_dict(), status_code=422)

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError):
        return JSONResponse(
            {"detail": exc.reason, "error_code": exc.error_code},
            status_code=401,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse({"detail": "Not found"}, status_code=404)

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition(request: Request, exc: InvalidTransitionError):
        return JSONResponse({"detail": str(exc)}, status_code=409)

    @app.exception_handler(SubmissionInProgressError)
    async def submission_in_progress(request: Request, exc: SubmissionInProgressError):
        return JSONResponse({"detail": str(exc)}, status_code=409)

    @app.exception_handler(ImageUploadError)
    async def image_upload_error(request: Request, exc: ImageUploadError):
        return JSONResponse({"detail": str(exc)}, status_code=400)

    @app.exception_handler(GeocodingError)
    async def geocoding_error(request: Request, exc: GeocodingError):
        return JSONResponse({"detail": str(exc)}, status_code=502)

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"detail": str(exc)}, status_code=500)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    config: Optional[Config] = None,
    store: Optional[RecordStore] = None,
    sessions: Optional[SessionRepository] = None,
    images: Optional[ImageStorage] = None,
    geocoder: Optional[GeocodingClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Any collaborator not passed in is built from config.
    """
    config = config or Config.load()

    app = FastAPI(
        title="Estatehub",
        description="Property marketplace: listings, maintenance requests and payments",
        version=VERSION,
        # Production settings: disable docs/redoc
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )

    # Healthcheck endpoints: no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy"}

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["*"],
        )

    # Collaborators
    app.state.config = config
    app.state.store = store or RecordStore(config.records_path)
    app.state.sessions = sessions or SessionRepository(
        config.sessions_path,
        expiry_hours=config.session_expiry_hours,
    )
    app.state.images = images or ImageStorage(
        config.uploads_path,
        url_prefix=UPLOADS_URL,
        max_bytes=config.max_image_bytes,
    )
    app.state.drafts = DraftRegistry()
    if geocoder is None and config.google_maps_api_key:
        geocoder = GeocodingClient(config.google_maps_api_key, timeout=config.geocoding_timeout)
    app.state.geocoder = geocoder

    _register_exception_handlers(app)

    # Uploaded images are served straight from disk
    app.mount(
        UPLOADS_URL,
        StaticFiles(directory=Path(app.state.images.storage_root), check_dir=False),
        name="uploads",
    )

    app.include_router(api_router)

    @app.get("/api/health")
    async def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
            "geocoding": app.state.geocoder is not None,
        }

    logger.info("Estatehub app created (data dir: %s)", config.data_dir)
    return app


# Create app instance for uvicorn
app = create_app()
