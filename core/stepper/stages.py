"""
Submission Stages - Ordered Steps of the Property Listing Form

Each stage owns a subset of the property schema's fields. Workflow-level
checks that the schema cannot express live here as guards (blocking) or
advisories (notice only).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Final, Mapping, Optional, Sequence

from core.notifications import Notice
from core.validation.rules import Violation


StageGuard = Callable[[Mapping[str, Any], Sequence[str]], list[Violation]]
StageAdvisory = Callable[[Mapping[str, Any], Sequence[str]], Optional[Notice]]

DEFAULT_MAX_IMAGES: Final[int] = 6


# =============================================================================
# Stage
# =============================================================================


@dataclass(frozen=True)
class Stage:
    """One named step of a stepped submission."""

    key: str
    title: str
    description: str
    fields: tuple[str, ...] = ()
    guards: tuple[StageGuard, ...] = ()
    advisories: tuple[StageAdvisory, ...] = ()

    def run_guards(self, draft: Mapping[str, Any], images: Sequence[str]) -> list[Violation]:
        violations: list[Violation] = []
        for guard in self.guards:
            violations.extend(guard(draft, images))
        return violations

    def run_advisories(self, draft: Mapping[str, Any], images: Sequence[str]) -> list[Notice]:
        notices = []
        for advisory in self.advisories:
            notice = advisory(draft, images)
            if notice is not None:
                notices.append(notice)
        return notices

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "description": self.description,
            "fields": list(self.fields),
        }


# =============================================================================
# Guards and Advisories
# =============================================================================


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def is_location_unset(latitude: Any, longitude: Any) -> bool:
    """
    Whether coordinates are the 0/0 "nothing picked on the map" sentinel.

    0/0 is a real point in the Gulf of Guinea and passes the schema's range
    rules; the workflow still treats it as unset.
    """
    return _as_number(latitude) == 0.0 and _as_number(longitude) == 0.0


def require_location_selected(
    draft: Mapping[str, Any],
    images: Sequence[str],
) -> list[Violation]:
    """Block the Location stage until a point has been picked."""
    if is_location_unset(draft.get("latitude"), draft.get("longitude")):
        return [Violation("location", "Please select a location on the map")]
    return []


def limit_images(max_images: int) -> StageGuard:
    """Block when more images are attached than the listing allows."""

    def guard(draft: Mapping[str, Any], images: Sequence[str]) -> list[Violation]:
        if len(images) > max_images:
            return [Violation("images", f"Maximum {max_images} images allowed")]
        return []

    return guard


def recommend_images(draft: Mapping[str, Any], images: Sequence[str]) -> Optional[Notice]:
    """Zero images is allowed but worth a nudge."""
    if not images:
        return Notice(
            title="No Images",
            description="Consider adding at least one image to attract more viewers",
        )
    return None


# =============================================================================
# Property Listing Stages
# =============================================================================


def build_property_stages(max_images: int = DEFAULT_MAX_IMAGES) -> tuple[Stage, ...]:
    """Stages of the property listing form, in order."""
    return (
        Stage(
            key="basic_info",
            title="Basic Info",
            description="Property details",
            fields=("title", "description", "property_type", "listing_type", "price"),
        ),
        Stage(
            key="specifications",
            title="Specifications",
            description="Size & features",
            fields=("bedrooms", "bathrooms", "area_sqft"),
        ),
        Stage(
            key="location",
            title="Location",
            description="Address & map",
            fields=("address", "city", "state", "country", "postal_code", "latitude", "longitude"),
            guards=(require_location_selected,),
        ),
        Stage(
            key="images",
            title="Images",
            description="Upload photos",
            guards=(limit_images(max_images),),
            advisories=(recommend_images,),
        ),
        Stage(
            key="review",
            title="Review",
            description="Confirm details",
        ),
    )


PROPERTY_STAGES: Final[tuple[Stage, ...]] = build_property_stages()
