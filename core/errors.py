"""
Marketplace Errors - Exception Hierarchy

Violations are returned as values by the validator and the stepped
controller. These exceptions are raised only at the service and web
boundary, where a caller must stop the current action.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from core.validation.rules import Violation


class MarketplaceError(Exception):
    """Base class for all marketplace errors."""

    pass


class ValidationError(MarketplaceError):
    """Raised when a record fails its schema. Always recoverable by the user."""

    def __init__(self, violations: Sequence["Violation"]):
        self.violations = tuple(violations)
        fields = ", ".join(dict.fromkeys(v.field for v in self.violations))
        super().__init__(f"Validation failed: {fields}")

    def to_dict(self) -> dict:
        """Convert to the form-facing error payload."""
        # Local import keeps core.errors importable from the validation package
        from core.validation.formatting import violations_to_field_map

        return {
            "errors": [v.to_dict() for v in self.violations],
            "field_errors": violations_to_field_map(self.violations),
        }


class NotAuthenticatedError(MarketplaceError):
    """Raised when no valid session identifies the current user."""

    def __init__(self, reason: str = "Not authenticated", error_code: str = "MISSING"):
        self.reason = reason
        self.error_code = error_code
        super().__init__(reason)


class StoreError(MarketplaceError):
    """Raised when the record store rejects an operation."""

    def __init__(self, message: str, table: Optional[str] = None):
        self.table = table
        super().__init__(message)


class NotFoundError(MarketplaceError):
    """Raised when a record is missing or not owned by the current user."""

    def __init__(self, table: str, record_id: str):
        self.table = table
        self.record_id = record_id
        super().__init__(f"{table} record {record_id} not found")


class ImageUploadError(MarketplaceError):
    """Raised when an image is rejected by blob storage."""

    pass


class GeocodingError(MarketplaceError):
    """Raised when an address or coordinate cannot be resolved."""

    pass


class InvalidTransitionError(MarketplaceError):
    """Raised when a stepped submission is driven out of order."""

    pass


class SubmissionInProgressError(MarketplaceError):
    """Raised when a draft is submitted while a previous submit is outstanding."""

    pass
