"""
Maintenance Requests - Filing, Tracking and Closing Repairs

A request is filed against an existing property or together with a new,
minimal property (see core.marketplace.targets). Requests are visible to
their requester and to the assigned provider.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Final, Mapping

from core.errors import NotFoundError, StoreError, ValidationError
from core.marketplace.identity import CurrentUser
from core.marketplace.properties import image_rows
from core.marketplace.store import MAINTENANCE_REQUESTS, PROPERTIES, PROPERTY_IMAGES, RecordStore
from core.marketplace.targets import (
    ExistingPropertyRef,
    NewPropertyDraft,
    PropertyTarget,
    parse_property_target,
)
from core.validation.rules import Violation
from core.validation.validator import Schema
from core.validation.schemas import (
    MAINTENANCE_SCHEMA,
    MAINTENANCE_UPDATE_SCHEMA,
    ListingType,
    MaintenanceStatus,
    PropertyStatus,
)


logger = logging.getLogger(__name__)


# Request fields without the property reference, which comes from the target
REQUEST_DETAILS_SCHEMA: Final[Schema] = MAINTENANCE_SCHEMA.project(
    [f for f in MAINTENANCE_SCHEMA.fields if f != "property_id"],
    name="maintenance_details",
)

# Nullable fields the edit form always sends; leaving one out clears it
CLEARABLE_FIELDS: Final[tuple[str, ...]] = ("estimated_cost", "actual_cost", "scheduled_date")

PROPERTY_SUMMARY_FIELDS: Final[tuple[str, ...]] = ("title", "address", "city", "country")


class MaintenanceService:
    """Maintenance request operations over the record store."""

    def __init__(self, store: RecordStore):
        self._store = store

    # =========================================================================
    # Create
    # =========================================================================

    def _resolve_existing(self, target: ExistingPropertyRef) -> str:
        if self._store.get(PROPERTIES, target.property_id) is None:
            raise ValidationError([Violation("property_id", "Invalid property")])
        return target.property_id

    def _create_property(self, user: CurrentUser, target: NewPropertyDraft) -> str:
        row = dict(target.record)
        row.update({
            "owner_id": user.id,
            "listing_type": ListingType.RENT.value,
            "price": 0,
            "status": PropertyStatus.AVAILABLE.value,
        })
        created = self._store.insert(PROPERTIES, row)[0]

        if target.images:
            try:
                self._store.insert(PROPERTY_IMAGES, image_rows(created["id"], target.images))
            except StoreError as e:
                logger.error("Error inserting images for property %s: %s", created["id"], e)

        logger.info("Property %s created for a maintenance request by %s", created["id"], user.id)
        return created["id"]

    def create_request(
        self,
        user: CurrentUser,
        target: PropertyTarget,
        request: Mapping[str, Any],
    ) -> dict:
        """
        File a maintenance request.

        The request details are validated before anything is written, so a
        rejected form never leaves a new property behind. A store failure
        between the property insert and the request insert still does.

        Args:
            user: Requester
            target: Existing property reference or new property draft
            request: title, description, category, priority, estimated_cost

        Returns:
            The stored request row

        Raises:
            ValidationError: If the details fail validation or the existing
                             property does not exist
            StoreError: If a write fails
        """
        details = REQUEST_DETAILS_SCHEMA.validate(request).raise_for_violations()

        if isinstance(target, ExistingPropertyRef):
            property_id = self._resolve_existing(target)
        elif isinstance(target, NewPropertyDraft):
            property_id = self._create_property(user, target)
        else:
            raise TypeError(f"Unsupported property target: {target!r}")

        row = MAINTENANCE_SCHEMA.validate({**details, "property_id": property_id}).raise_for_violations()
        row.setdefault("estimated_cost", None)
        row.update({
            "requester_id": user.id,
            "status": MaintenanceStatus.PENDING.value,
        })
        created = self._store.insert(MAINTENANCE_REQUESTS, row)[0]
        logger.info("Maintenance request %s filed by %s", created["id"], user.id)
        return created

    def create_request_from_form(
        self,
        user: CurrentUser,
        target_data: Mapping[str, Any],
        request: Mapping[str, Any],
    ) -> dict:
        """
        File a maintenance request straight from the submitted form.

        The property target and the request details are checked together so
        every problem with the form is reported in one ValidationError.

        Raises:
            ValidationError: If the target or the details fail validation
            StoreError: If a write fails
        """
        violations: list[Violation] = []
        target = None
        try:
            target = parse_property_target(target_data)
        except ValidationError as e:
            violations.extend(e.violations)

        if isinstance(target, ExistingPropertyRef) and self._store.get(PROPERTIES, target.property_id) is None:
            violations.append(Violation("property_id", "Invalid property"))
        violations.extend(REQUEST_DETAILS_SCHEMA.validate(request).violations)

        if violations:
            raise ValidationError(violations)
        return self.create_request(user, target, request)

    # =========================================================================
    # Read
    # =========================================================================

    def _with_property(self, request: dict) -> dict:
        prop = self._store.get(PROPERTIES, request.get("property_id") or "")
        request["property"] = (
            {key: prop.get(key) for key in PROPERTY_SUMMARY_FIELDS} if prop else None
        )
        return request

    def list_for_user(self, user: CurrentUser) -> list[dict]:
        """Requests the caller filed or is assigned to, newest first."""

        def involved(row: dict) -> bool:
            return user.id in (row.get("requester_id"), row.get("provider_id"))

        return [
            self._with_property(row)
            for row in self._store.select(MAINTENANCE_REQUESTS, where=involved)
        ]

    def list_for_requester(self, user: CurrentUser) -> list[dict]:
        """Requests the caller filed, newest first."""
        return self._store.select(MAINTENANCE_REQUESTS, {"requester_id": user.id})

    def get_request(self, user: CurrentUser, request_id: str) -> dict:
        """
        Request detail with its property summary.

        Raises:
            NotFoundError: If missing, or the caller is neither requester nor provider
        """
        row = self._store.get(MAINTENANCE_REQUESTS, request_id)
        if row is None or user.id not in (row.get("requester_id"), row.get("provider_id")):
            raise NotFoundError(MAINTENANCE_REQUESTS, request_id)
        return self._with_property(row)

    # =========================================================================
    # Update / Delete
    # =========================================================================

    def update_request(self, user: CurrentUser, request_id: str, changes: Mapping[str, Any]) -> dict:
        """
        Apply the request edit form.

        completed_date is stamped when the status becomes completed, kept
        while it stays completed, and cleared for any other status.

        Raises:
            ValidationError: If the form fails validation
            NotFoundError: If missing, or the caller is neither requester nor provider
        """
        values = MAINTENANCE_UPDATE_SCHEMA.validate(changes).raise_for_violations()
        current = self.get_request(user, request_id)

        for key in CLEARABLE_FIELDS:
            values.setdefault(key, None)

        if values["status"] == MaintenanceStatus.COMPLETED.value:
            values["completed_date"] = (
                current.get("completed_date")
                if current.get("status") == MaintenanceStatus.COMPLETED.value
                else None
            ) or datetime.now(timezone.utc).isoformat()
        else:
            values["completed_date"] = None

        updated = self._store.update(MAINTENANCE_REQUESTS, values, {"id": request_id})[0]
        logger.info("Maintenance request %s set to %s", request_id, values["status"])
        return self._with_property(updated)

    def delete_request(self, user: CurrentUser, request_id: str) -> None:
        """
        Delete a request. Only its requester may do so.

        Raises:
            NotFoundError: If missing or filed by someone else
        """
        deleted = self._store.delete(MAINTENANCE_REQUESTS, {"id": request_id, "requester_id": user.id})
        if not deleted:
            raise NotFoundError(MAINTENANCE_REQUESTS, request_id)
        logger.info("Maintenance request %s deleted by %s", request_id, user.id)
