"""
Maintenance Property Targets - Existing vs New Property

A maintenance request either points at a property that already exists or
carries a minimal new property to be created alongside it. The two shapes
are separate types, each validated by its own schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Mapping, Union

from core.errors import ValidationError
from core.stepper.stages import require_location_selected
from core.validation.rules import Violation
from core.validation.schemas import EXISTING_PROPERTY_SCHEMA, NEW_PROPERTY_SCHEMA


EXISTING: Final[str] = "existing"
NEW: Final[str] = "new"

# Violations from the nested new-property form are reported as
# "new_property.<field>" so they never collide with the request's own fields.
NEW_PROPERTY_PREFIX: Final[str] = "new_property."


@dataclass(frozen=True)
class ExistingPropertyRef:
    """Request filed against a property already in the store."""

    property_id: str

    kind: str = field(default=EXISTING, init=False)


@dataclass(frozen=True)
class NewPropertyDraft:
    """Minimal property created together with the request."""

    record: dict[str, Any]
    images: tuple[str, ...] = ()

    kind: str = field(default=NEW, init=False)


PropertyTarget = Union[ExistingPropertyRef, NewPropertyDraft]


def _prefixed(violations, prefix: str) -> list[Violation]:
    return [Violation(f"{prefix}{v.field}", v.message) for v in violations]


def parse_property_target(data: Mapping[str, Any]) -> PropertyTarget:
    """
    Build a validated target from form input.

    Accepted shapes:
        {"kind": "existing", "property_id": "<uuid>"}
        {"kind": "new", "property": {...}, "images": [...]}

    Raises:
        ValidationError: If the kind is unknown or its variant schema fails
    """
    kind = data.get("kind")

    if kind == EXISTING:
        result = EXISTING_PROPERTY_SCHEMA.validate(data)
        return ExistingPropertyRef(property_id=result.raise_for_violations()["property_id"])

    if kind == NEW:
        raw = data.get("property")
        if not isinstance(raw, Mapping):
            raise ValidationError([Violation("property", "Property details are required")])

        images = data.get("images") or ()
        if not isinstance(images, (list, tuple)) or not all(isinstance(url, str) for url in images):
            raise ValidationError([Violation("images", "Expected a list of image URLs")])

        result = NEW_PROPERTY_SCHEMA.validate(raw)
        violations = _prefixed(result.violations, NEW_PROPERTY_PREFIX)
        violations.extend(_prefixed(require_location_selected(raw, images), NEW_PROPERTY_PREFIX))
        if violations:
            raise ValidationError(violations)
        return NewPropertyDraft(record=dict(result.value), images=tuple(images))

    raise ValidationError([
        Violation("kind", f"Invalid value. Expected '{EXISTING}' | '{NEW}', received '{kind}'"),
    ])
