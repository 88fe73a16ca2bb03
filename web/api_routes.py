"""
Marketplace API Routes - JSON Endpoints Behind Bearer Sessions

Every route except browse and listing detail requires
"Authorization: Bearer <token>". Form validation happens in the core
schemas; request models here only describe the envelope.

Error mapping (see web.app):
- ValidationError -> 422 {"errors": [...], "field_errors": {...}}
- NotAuthenticatedError -> 401
- NotFoundError -> 404
- InvalidTransitionError / SubmissionInProgressError -> 409
- StoreError -> 500
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from core.errors import NotFoundError
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
    dashboard_summary,
)
from core.marketplace.images import DEFAULT_FOLDER
from core.stepper import DraftEntry, DraftRegistry, StepOutcome
from web.dependencies import (
    bearer_token,
    get_drafts,
    get_geocoder,
    get_image_storage,
    get_maintenance_service,
    get_payment_service,
    get_profile_service,
    get_property_service,
    get_sessions,
    get_store,
    require_user,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api", tags=["marketplace"])


# =============================================================================
# Request Models
# =============================================================================


class DraftUpdate(BaseModel):
    """Fields to merge into a draft, and optionally its new image list."""
    values: dict[str, Any] = {}
    images: Optional[list[str]] = None


class ListingRequest(BaseModel):
    """Property form plus its ordered image URLs."""
    record: dict[str, Any]
    images: Optional[list[str]] = None


class MaintenanceCreateRequest(BaseModel):
    """
    Maintenance form with its property target.

    target is {"kind": "existing", "property_id": ...} or
    {"kind": "new", "property": {...}, "images": [...]}.
    """
    target: dict[str, Any]
    request: dict[str, Any]


# =============================================================================
# Helpers
# =============================================================================


def _draft_state(entry: DraftEntry) -> dict:
    return {"draft_id": entry.draft_id, **entry.controller.to_dict()}


def _outcome_response(entry: DraftEntry, outcome: StepOutcome, status_code: int = 200) -> JSONResponse:
    body = {**outcome.to_dict(), "draft": _draft_state(entry)}
    if not outcome.ok:
        return JSONResponse(body, status_code=422)
    return JSONResponse(body, status_code=status_code)


# =============================================================================
# Property Drafts (stepped listing form)
# =============================================================================


@router.post("/properties/drafts", status_code=201)
def open_property_draft(
    user: CurrentUser = Depends(require_user),
    service: PropertyService = Depends(get_property_service),
    drafts: DraftRegistry = Depends(get_drafts),
):
    """Start a new stepped listing form at the Basic Info stage."""
    entry = drafts.open(user.id, service.open_draft(user))
    return _draft_state(entry)


@router.get("/properties/drafts/{draft_id}")
def get_property_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_user),
    drafts: DraftRegistry = Depends(get_drafts),
):
    return _draft_state(drafts.get(draft_id, user.id))


@router.patch("/properties/drafts/{draft_id}")
def update_property_draft(
    draft_id: str,
    update: DraftUpdate,
    user: CurrentUser = Depends(require_user),
    drafts: DraftRegistry = Depends(get_drafts),
):
    """Merge field values into the draft. Nothing is validated until advance."""
    entry = drafts.get(draft_id, user.id)
    entry.controller.update_draft(update.values)
    if update.images is not None:
        entry.controller.set_images(update.images)
    return _draft_state(entry)


@router.post("/properties/drafts/{draft_id}/advance")
def advance_property_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_user),
    drafts: DraftRegistry = Depends(get_drafts),
):
    entry = drafts.get(draft_id, user.id)
    return _outcome_response(entry, entry.controller.advance())


@router.post("/properties/drafts/{draft_id}/retreat")
def retreat_property_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_user),
    drafts: DraftRegistry = Depends(get_drafts),
):
    entry = drafts.get(draft_id, user.id)
    return _outcome_response(entry, entry.controller.retreat())


@router.post("/properties/drafts/{draft_id}/submit")
def submit_property_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_user),
    drafts: DraftRegistry = Depends(get_drafts),
):
    """
    Validate the whole draft and write the listing.

    On success the draft is closed and the new property returned. A store
    failure leaves the draft open on the Review stage.
    """
    entry = drafts.get(draft_id, user.id)
    outcome = entry.controller.submit()
    if outcome.ok:
        drafts.discard(draft_id)
        body = {**outcome.to_dict(), "property": outcome.result}
        return JSONResponse(body, status_code=201)
    return _outcome_response(entry, outcome)


@router.delete("/properties/drafts/{draft_id}", status_code=204)
def discard_property_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_user),
    drafts: DraftRegistry = Depends(get_drafts),
):
    drafts.get(draft_id, user.id)
    drafts.discard(draft_id)
    return Response(status_code=204)


# =============================================================================
# Properties
# =============================================================================


@router.get("/properties")
def browse_properties(
    type: Optional[str] = Query(None, description="Property type"),
    listing: Optional[str] = Query(None, description="Listing type"),
    city: Optional[str] = Query(None, description="City (partial, case-insensitive)"),
    service: PropertyService = Depends(get_property_service),
):
    """Available properties, newest first. No sign-in required."""
    return {"properties": service.browse(property_type=type, listing_type=listing, city=city)}


@router.post("/properties", status_code=201)
def create_property(
    body: ListingRequest,
    user: CurrentUser = Depends(require_user),
    service: PropertyService = Depends(get_property_service),
):
    """Single-request listing, validated by the same schema as the stepped form."""
    return {"property": service.create_listing(user, body.record, body.images or [])}


@router.get("/properties/mine")
def list_my_properties(
    user: CurrentUser = Depends(require_user),
    service: PropertyService = Depends(get_property_service),
):
    return {"properties": service.list_owned(user)}


@router.post("/properties/images", status_code=201)
async def upload_property_image(
    file: UploadFile = File(...),
    folder: str = Form(DEFAULT_FOLDER),
    user: CurrentUser = Depends(require_user),
    storage: ImageStorage = Depends(get_image_storage),
):
    """Store one image and return its URL for the draft's image list."""
    content = await file.read()
    url = storage.upload(folder, file.filename or "image", content, file.content_type)
    logger.info("Image uploaded by %s: %s", user.id, url)
    return {"url": url}


@router.delete("/properties/images", status_code=204)
def delete_property_image(
    url: str = Query(...),
    user: CurrentUser = Depends(require_user),
    service: PropertyService = Depends(get_property_service),
):
    """Remove an uploaded image, detaching it from the caller's listing if needed."""
    if not service.delete_uploaded_image(user, url):
        raise NotFoundError("images", url)
    logger.info("Image deleted by %s: %s", user.id, url)
    return Response(status_code=204)


@router.get("/properties/{property_id}")
def get_property(
    property_id: str,
    service: PropertyService = Depends(get_property_service),
):
    return {"property": service.get_listing(property_id)}


@router.get("/properties/{property_id}/edit")
def get_property_for_edit(
    property_id: str,
    user: CurrentUser = Depends(require_user),
    service: PropertyService = Depends(get_property_service),
):
    return {"property": service.get_owned(user, property_id)}


@router.patch("/properties/{property_id}")
def update_property(
    property_id: str,
    body: ListingRequest,
    user: CurrentUser = Depends(require_user),
    service: PropertyService = Depends(get_property_service),
):
    updated = service.update_listing(user, property_id, body.record, images=body.images)
    return {"property": updated}


@router.delete("/properties/{property_id}", status_code=204)
def delete_property(
    property_id: str,
    user: CurrentUser = Depends(require_user),
    service: PropertyService = Depends(get_property_service),
):
    service.delete_listing(user, property_id)
    return Response(status_code=204)


# =============================================================================
# Maintenance
# =============================================================================


@router.post("/maintenance", status_code=201)
def create_maintenance_request(
    body: MaintenanceCreateRequest,
    user: CurrentUser = Depends(require_user),
    service: MaintenanceService = Depends(get_maintenance_service),
):
    return {"request": service.create_request_from_form(user, body.target, body.request)}


@router.get("/maintenance")
def list_maintenance_requests(
    user: CurrentUser = Depends(require_user),
    service: MaintenanceService = Depends(get_maintenance_service),
):
    return {"requests": service.list_for_user(user)}


@router.get("/maintenance/{request_id}")
def get_maintenance_request(
    request_id: str,
    user: CurrentUser = Depends(require_user),
    service: MaintenanceService = Depends(get_maintenance_service),
):
    return {"request": service.get_request(user, request_id)}


@router.patch("/maintenance/{request_id}")
def update_maintenance_request(
    request_id: str,
    changes: dict[str, Any] = Body(...),
    user: CurrentUser = Depends(require_user),
    service: MaintenanceService = Depends(get_maintenance_service),
):
    return {"request": service.update_request(user, request_id, changes)}


@router.delete("/maintenance/{request_id}", status_code=204)
def delete_maintenance_request(
    request_id: str,
    user: CurrentUser = Depends(require_user),
    service: MaintenanceService = Depends(get_maintenance_service),
):
    service.delete_request(user, request_id)
    return Response(status_code=204)


# =============================================================================
# Payments
# =============================================================================


@router.post("/payments/create")
def create_payment(
    payment: dict[str, Any] = Body(...),
    user: CurrentUser = Depends(require_user),
    service: PaymentService = Depends(get_payment_service),
):
    return {"transaction": service.create_transaction(user, payment)}


@router.post("/payments/complete")
def complete_payment(
    completion: dict[str, Any] = Body(...),
    user: CurrentUser = Depends(require_user),
    service: PaymentService = Depends(get_payment_service),
):
    return {"transaction": service.complete_transaction(user, completion)}


@router.get("/payments")
def list_payments(
    user: CurrentUser = Depends(require_user),
    service: PaymentService = Depends(get_payment_service),
):
    return {"transactions": service.list_for_user(user)}


# =============================================================================
# Profile & Dashboard
# =============================================================================


@router.get("/profile")
def get_profile(
    user: CurrentUser = Depends(require_user),
    service: ProfileService = Depends(get_profile_service),
):
    return {"email": user.email, "profile": service.get_profile(user)}


@router.put("/profile")
def update_profile(
    changes: dict[str, Any] = Body(...),
    user: CurrentUser = Depends(require_user),
    service: ProfileService = Depends(get_profile_service),
):
    return {"profile": service.update_profile(user, changes)}


@router.get("/dashboard")
def get_dashboard(
    user: CurrentUser = Depends(require_user),
    store: RecordStore = Depends(get_store),
):
    return dashboard_summary(store, user).to_dict()


# =============================================================================
# Session & Geocoding
# =============================================================================


@router.delete("/auth/session", status_code=204)
def sign_out(
    user: CurrentUser = Depends(require_user),
    token: Optional[str] = Depends(bearer_token),
    sessions: SessionRepository = Depends(get_sessions),
):
    sessions.revoke(token)
    return Response(status_code=204)


@router.get("/geocode")
def geocode_address(
    address: str = Query(..., min_length=1),
    user: CurrentUser = Depends(require_user),
    geocoder: GeocodingClient = Depends(get_geocoder),
):
    result = geocoder.geocode(address)
    return {"result": result.to_dict() if result else None}


@router.get("/geocode/reverse")
def reverse_geocode(
    lat: float = Query(...),
    lng: float = Query(...),
    user: CurrentUser = Depends(require_user),
    geocoder: GeocodingClient = Depends(get_geocoder),
):
    result = geocoder.reverse_geocode(lat, lng)
    return {"result": result.to_dict() if result else None}
