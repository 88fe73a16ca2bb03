"""
Estatehub - Core Business Logic

This package provides the marketplace core:
1. Validation (one schema per form record, pure and side-effect free)
2. Stepped Submission (multi-stage drafts with a single final write)
3. Marketplace (listings, maintenance, payments, profiles over a record store)
"""

from .errors import (
    MarketplaceError,
    ValidationError,
    NotAuthenticatedError,
    StoreError,
    NotFoundError,
    ImageUploadError,
    GeocodingError,
    InvalidTransitionError,
    SubmissionInProgressError,
)
from .notifications import (
    Notice,
    NoticeVariant,
    Notifier,
    ListNotifier,
    LoggingNotifier,
)

# Validation
from .validation import (
    Schema,
    ValidationResult,
    Violation,
    validate_record,
    PROPERTY_SCHEMA,
    MAINTENANCE_SCHEMA,
    PROFILE_SCHEMA,
    get_schema,
)

# Stepped Submission
from .stepper import (
    SteppedSubmissionController,
    StepOutcome,
    Stage,
    PROPERTY_STAGES,
)

# Marketplace
from .marketplace import (
    RecordStore,
    CurrentUser,
    SessionRepository,
    ImageStorage,
    GeocodingClient,
    PropertyService,
    MaintenanceService,
    PaymentService,
    ProfileService,
    dashboard_summary,
)

__all__ = [
    # Errors
    "MarketplaceError",
    "ValidationError",
    "NotAuthenticatedError",
    "StoreError",
    "NotFoundError",
    "ImageUploadError",
    "GeocodingError",
    "InvalidTransitionError",
    "SubmissionInProgressError",
    # Notifications
    "Notice",
    "NoticeVariant",
    "Notifier",
    "ListNotifier",
    "LoggingNotifier",
    # Validation
    "Schema",
    "ValidationResult",
    "Violation",
    "validate_record",
    "PROPERTY_SCHEMA",
    "MAINTENANCE_SCHEMA",
    "PROFILE_SCHEMA",
    "get_schema",
    # Stepped Submission
    "SteppedSubmissionController",
    "StepOutcome",
    "Stage",
    "PROPERTY_STAGES",
    # Marketplace
    "RecordStore",
    "CurrentUser",
    "SessionRepository",
    "ImageStorage",
    "GeocodingClient",
    "PropertyService",
    "MaintenanceService",
    "PaymentService",
    "ProfileService",
    "dashboard_summary",
]
