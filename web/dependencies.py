"""
Request dependencies for the marketplace API.

Collaborators are created once by create_app() and kept on app.state, so
tests can build an app around an in-memory store and fake sessions.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from core.marketplace import (
    CurrentUser,
    GeocodingClient,
    ImageStorage,
    MaintenanceService,
    PaymentService,
    ProfileService,
    PropertyService,
    RecordStore,
    SessionRepository,
    get_current_user,
)
from core.stepper import DraftRegistry
from utils.config import Config


logger = logging.getLogger(__name__)


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_sessions(request: Request) -> SessionRepository:
    return request.app.state.sessions


def get_image_storage(request: Request) -> ImageStorage:
    return request.app.state.images


def get_drafts(request: Request) -> DraftRegistry:
    return request.app.state.drafts


def get_geocoder(request: Request) -> GeocodingClient:
    """
    Geocoder, if an API key is configured.

    Raises:
        HTTPException(503) when geocoding is not configured
    """
    geocoder = request.app.state.geocoder
    if geocoder is None:
        raise HTTPException(status_code=503, detail="Geocoding is not configured")
    return geocoder


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Token from an "Authorization: Bearer <token>" header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def require_user(
    token: Optional[str] = Depends(bearer_token),
    sessions: SessionRepository = Depends(get_sessions),
) -> CurrentUser:
    """
    Resolve the caller.

    Raises:
        NotAuthenticatedError: Mapped to 401 by the app's exception handler
    """
    return get_current_user(token, sessions)


# =============================================================================
# Services
# =============================================================================


def get_property_service(
    store: RecordStore = Depends(get_store),
    config: Config = Depends(get_config),
    images: ImageStorage = Depends(get_image_storage),
) -> PropertyService:
    return PropertyService(store, max_images=config.max_images, images=images)


def get_maintenance_service(store: RecordStore = Depends(get_store)) -> MaintenanceService:
    return MaintenanceService(store)


def get_payment_service(store: RecordStore = Depends(get_store)) -> PaymentService:
    return PaymentService(store)


def get_profile_service(store: RecordStore = Depends(get_store)) -> ProfileService:
    return ProfileService(store)
