"""
Property Listings - Owner and Browse Operations

Owners list, edit and delete their own properties; everybody browses the
available ones. Every owner operation filters on owner_id, so a property
owned by someone else behaves exactly like a missing one.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from core.errors import ImageUploadError, NotFoundError, StoreError, ValidationError
from core.marketplace.identity import CurrentUser
from core.marketplace.images import ImageStorage
from core.marketplace.store import PROFILES, PROPERTIES, PROPERTY_IMAGES, RecordStore
from core.notifications import Notifier
from core.stepper.controller import SteppedSubmissionController
from core.stepper.stages import DEFAULT_MAX_IMAGES, build_property_stages
from core.validation.rules import Violation
from core.validation.schemas import PROPERTY_SCHEMA, PROPERTY_UPDATE_SCHEMA, PropertyStatus


logger = logging.getLogger(__name__)


def image_rows(property_id: str, urls: Sequence[str]) -> list[dict]:
    """property_images rows for an ordered URL list; the first is primary."""
    return [
        {
            "property_id": property_id,
            "image_url": url,
            "is_primary": index == 0,
            "display_order": index,
        }
        for index, url in enumerate(urls)
    ]


class PropertyService:
    """Listing operations over the record store."""

    def __init__(
        self,
        store: RecordStore,
        max_images: int = DEFAULT_MAX_IMAGES,
        images: Optional[ImageStorage] = None,
    ):
        """
        Args:
            store: Record store
            max_images: Image cap per listing
            images: Blob storage; when given, dropped images are deleted from it
        """
        self._store = store
        self._max_images = max_images
        self._images = images

    # =========================================================================
    # Create
    # =========================================================================

    def insert_listing(
        self,
        user: CurrentUser,
        record: Mapping[str, Any],
        images: Sequence[str] = (),
    ) -> dict:
        """
        Write an already-validated property and its images.

        The property row is written first. A failed image insert is logged
        and the property is kept.

        Raises:
            StoreError: If the property insert fails
        """
        row = dict(record)
        row["owner_id"] = user.id
        row["status"] = PropertyStatus.AVAILABLE.value
        created = self._store.insert(PROPERTIES, row)[0]

        if images:
            try:
                self._store.insert(PROPERTY_IMAGES, image_rows(created["id"], images))
            except StoreError as e:
                logger.error("Error inserting images for property %s: %s", created["id"], e)

        logger.info("Property %s listed by %s", created["id"], user.id)
        return created

    def create_listing(
        self,
        user: CurrentUser,
        record: Mapping[str, Any],
        images: Sequence[str] = (),
    ) -> dict:
        """
        Validate and write a property in one call.

        Raises:
            ValidationError: If the record fails the property schema or
                             too many images are attached
            StoreError: If the property insert fails
        """
        value = PROPERTY_SCHEMA.validate(record).raise_for_violations()
        self._check_image_count(images)
        return self.insert_listing(user, value, images)

    def open_draft(
        self,
        user: CurrentUser,
        notifier: Optional[Notifier] = None,
    ) -> SteppedSubmissionController:
        """Start a stepped listing form whose submit writes through this service."""

        def writer(record: dict, images: list[str]) -> dict:
            return self.insert_listing(user, record, images)

        return SteppedSubmissionController(
            PROPERTY_SCHEMA,
            build_property_stages(self._max_images),
            writer,
            notifier=notifier,
        )

    def _check_image_count(self, images: Sequence[str]) -> None:
        if len(images) > self._max_images:
            raise ValidationError([
                Violation("images", f"Maximum {self._max_images} images allowed"),
            ])

    # =========================================================================
    # Owner Operations
    # =========================================================================

    def _owned(self, user: CurrentUser, property_id: str) -> dict:
        rows = self._store.select(PROPERTIES, {"id": property_id, "owner_id": user.id})
        if not rows:
            raise NotFoundError(PROPERTIES, property_id)
        return rows[0]

    def get_owned(self, user: CurrentUser, property_id: str) -> dict:
        """Owned property with its images."""
        listing = self._owned(user, property_id)
        listing["images"] = self.list_images(property_id)
        return listing

    def list_owned(self, user: CurrentUser) -> list[dict]:
        """Caller's properties, newest first."""
        return self._store.select(PROPERTIES, {"owner_id": user.id})

    def update_listing(
        self,
        user: CurrentUser,
        property_id: str,
        record: Mapping[str, Any],
        images: Optional[Sequence[str]] = None,
    ) -> dict:
        """
        Validate and apply the owner edit form.

        Args:
            user: Caller; must own the property
            property_id: Property to edit
            record: Full edit form (every property field plus status)
            images: New ordered image list, or None to leave images alone

        Raises:
            ValidationError: If the form fails validation
            NotFoundError: If the property is missing or not owned
        """
        value = PROPERTY_UPDATE_SCHEMA.validate(record).raise_for_violations()
        if images is not None:
            self._check_image_count(images)
        self._owned(user, property_id)

        updated = self._store.update(PROPERTIES, value, {"id": property_id, "owner_id": user.id})[0]
        if images is not None:
            self.replace_images(property_id, images)
        return updated

    def replace_images(self, property_id: str, urls: Sequence[str]) -> list[dict]:
        """
        Make the property's images exactly urls, in order.

        Removed images are deleted, new ones inserted, and every kept image
        renumbered so display_order follows the list and index 0 is primary.
        """
        existing = {row["image_url"]: row for row in self.list_images(property_id)}
        wanted = list(dict.fromkeys(urls))

        for url, row in existing.items():
            if url not in wanted:
                self._store.delete(PROPERTY_IMAGES, {"id": row["id"]})
                self._delete_blob(url)

        new_rows = [row for row in image_rows(property_id, wanted) if row["image_url"] not in existing]
        if new_rows:
            self._store.insert(PROPERTY_IMAGES, new_rows)

        for index, url in enumerate(wanted):
            if url in existing:
                self._store.update(
                    PROPERTY_IMAGES,
                    {"is_primary": index == 0, "display_order": index},
                    {"id": existing[url]["id"]},
                )

        return self.list_images(property_id)

    def delete_listing(self, user: CurrentUser, property_id: str) -> None:
        """
        Delete an owned property and its images.

        Raises:
            NotFoundError: If the property is missing or not owned
        """
        self._owned(user, property_id)
        urls = [row["image_url"] for row in self.list_images(property_id)]
        self._store.delete(PROPERTY_IMAGES, {"property_id": property_id})
        self._store.delete(PROPERTIES, {"id": property_id, "owner_id": user.id})
        logger.info("Property %s deleted by %s", property_id, user.id)
        for url in urls:
            self._delete_blob(url)

    def delete_uploaded_image(self, user: CurrentUser, url: str) -> bool:
        """
        Remove an uploaded image from storage.

        An image still attached to one of the caller's properties is detached
        first. An image attached to someone else's property is left alone.

        Returns:
            True if a stored file was removed

        Raises:
            NotFoundError: If the image belongs to another owner's property
            ImageUploadError: If the file cannot be removed
        """
        rows = self._store.select(PROPERTY_IMAGES, {"image_url": url})
        for row in rows:
            self._owned(user, row["property_id"])

        for row in rows:
            self._store.delete(PROPERTY_IMAGES, {"id": row["id"]})
        if self._images is None:
            return False
        return self._images.delete(url)

    def _delete_blob(self, url: str) -> None:
        if self._images is None:
            return
        try:
            self._images.delete(url)
        except ImageUploadError as e:
            logger.error("Error deleting image %s: %s", url, e)

    # =========================================================================
    # Browse
    # =========================================================================

    def list_images(self, property_id: str) -> list[dict]:
        return self._store.select(
            PROPERTY_IMAGES,
            {"property_id": property_id},
            order_by="display_order",
            descending=False,
        )

    def browse(
        self,
        property_type: Optional[str] = None,
        listing_type: Optional[str] = None,
        city: Optional[str] = None,
    ) -> list[dict]:
        """
        Available properties, newest first.

        Args:
            property_type: Exact property type filter
            listing_type: Exact listing type filter
            city: Case-insensitive substring of the city
        """
        filters: dict[str, Any] = {"status": PropertyStatus.AVAILABLE.value}
        if property_type:
            filters["property_type"] = property_type
        if listing_type:
            filters["listing_type"] = listing_type

        where = None
        if city and city.strip():
            needle = city.strip().lower()

            def where(row: dict) -> bool:
                return needle in str(row.get("city") or "").lower()

        return self._store.select(PROPERTIES, filters, where=where)

    def get_listing(self, property_id: str) -> dict:
        """
        Public listing detail with images and the owner's name.

        Raises:
            NotFoundError: If the property does not exist
        """
        listing = self._store.get(PROPERTIES, property_id)
        if listing is None:
            raise NotFoundError(PROPERTIES, property_id)

        owner = self._store.get(PROFILES, listing.get("owner_id") or "")
        listing["owner_name"] = owner.get("full_name") if owner else None
        listing["images"] = self.list_images(property_id)
        return listing
