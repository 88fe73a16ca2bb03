"""
Estatehub - Marketplace Module

Listings, maintenance requests, payments and profiles over a record store,
plus the collaborators they need: sessions, image storage and geocoding.
"""

from core.marketplace.store import (
    RecordStore,
    TABLES,
    PROPERTIES,
    PROPERTY_IMAGES,
    MAINTENANCE_REQUESTS,
    TRANSACTIONS,
    PROFILES,
    get_record_store,
    reset_record_store,
)
from core.marketplace.identity import (
    CurrentUser,
    UserSession,
    SessionStatus,
    SessionRepository,
    SessionValidationSuccess,
    SessionValidationFailure,
    SessionValidationResult,
    validate_session,
    get_current_user,
    get_session_repository,
    reset_session_repository,
)
from core.marketplace.images import (
    ImageStorage,
    MAX_IMAGE_BYTES,
)
from core.marketplace.geocoding import (
    GeocodingClient,
    GeocodeResult,
)
from core.marketplace.targets import (
    ExistingPropertyRef,
    NewPropertyDraft,
    PropertyTarget,
    parse_property_target,
)
from core.marketplace.properties import PropertyService, image_rows
from core.marketplace.maintenance import MaintenanceService
from core.marketplace.payments import PaymentService
from core.marketplace.profiles import ProfileService
from core.marketplace.dashboard import DashboardSummary, dashboard_summary

__all__ = [
    # Store
    "RecordStore",
    "TABLES",
    "PROPERTIES",
    "PROPERTY_IMAGES",
    "MAINTENANCE_REQUESTS",
    "TRANSACTIONS",
    "PROFILES",
    "get_record_store",
    "reset_record_store",
    # Identity
    "CurrentUser",
    "UserSession",
    "SessionStatus",
    "SessionRepository",
    "SessionValidationSuccess",
    "SessionValidationFailure",
    "SessionValidationResult",
    "validate_session",
    "get_current_user",
    "get_session_repository",
    "reset_session_repository",
    # Images
    "ImageStorage",
    "MAX_IMAGE_BYTES",
    # Geocoding
    "GeocodingClient",
    "GeocodeResult",
    # Targets
    "ExistingPropertyRef",
    "NewPropertyDraft",
    "PropertyTarget",
    "parse_property_target",
    # Services
    "PropertyService",
    "image_rows",
    "MaintenanceService",
    "PaymentService",
    "ProfileService",
    "DashboardSummary",
    "dashboard_summary",
]
