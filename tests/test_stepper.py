"""
Tests for the Stepped Listing Form

Tests covering:
1. advance validates only the current stage and never moves on failure
2. The Location stage rejects 0/0 even though the schema accepts it
3. The Images stage nudges on zero images and blocks on too many
4. retreat never validates and floors at the first stage
5. submit validates everything and writes exactly once
6. A failed write keeps the draft on the Review stage
7. A second submit while one is outstanding is rejected
"""

from __future__ import annotations

import pytest

from core.errors import (
    InvalidTransitionError,
    NotFoundError,
    StoreError,
    SubmissionInProgressError,
)
from core.notifications import ListNotifier, NoticeVariant
from core.stepper import (
    PROPERTY_STAGES,
    DraftRegistry,
    Stage,
    SteppedSubmissionController,
    build_property_stages,
    is_location_unset,
)
from core.validation import PROPERTY_SCHEMA


# =============================================================================
# Fixtures
# =============================================================================


class RecordingWriter:
    """Store-write stand-in that records every call."""

    def __init__(self, fail_times: int = 0):
        self.calls: list[tuple[dict, list[str]]] = []
        self.fail_times = fail_times

    def __call__(self, record: dict, images: list[str]) -> dict:
        self.calls.append((record, images))
        if self.fail_times:
            self.fail_times -= 1
            raise StoreError("connection reset by peer", table="properties")
        return {"id": "prop-1", **record}


@pytest.fixture
def valid_draft():
    return {
        "title": "Beautiful Apartment",
        "description": "A nice place to live",
        "property_type": "apartment",
        "listing_type": "rent",
        "price": "1500",
        "bedrooms": "2",
        "bathrooms": "1",
        "area_sqft": "",
        "address": "123 Main St",
        "city": "New York",
        "state": "NY",
        "country": "USA",
        "postal_code": "10001",
        "latitude": 40.7128,
        "longitude": -74.0060,
    }


@pytest.fixture
def notifier():
    return ListNotifier()


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def controller(writer, notifier):
    return SteppedSubmissionController(PROPERTY_SCHEMA, PROPERTY_STAGES, writer, notifier=notifier)


def advance_to(controller: SteppedSubmissionController, key: str) -> None:
    """Advance until the named stage is current, failing the test if blocked."""
    while controller.current_stage.key != key:
        outcome = controller.advance()
        assert outcome.ok, outcome.field_errors


# =============================================================================
# Stages
# =============================================================================


class TestStages:
    """Stage layout of the listing form."""

    def test_stage_order(self):
        assert [s.key for s in PROPERTY_STAGES] == [
            "basic_info",
            "specifications",
            "location",
            "images",
            "review",
        ]
        assert [s.title for s in PROPERTY_STAGES] == [
            "Basic Info",
            "Specifications",
            "Location",
            "Images",
            "Review",
        ]

    def test_stage_fields_are_schema_fields(self):
        owned = [f for stage in PROPERTY_STAGES for f in stage.fields]

        assert sorted(owned) == sorted(PROPERTY_SCHEMA.fields)

    def test_location_unset_sentinel(self):
        assert is_location_unset(0, 0) is True
        assert is_location_unset("0", 0.0) is True
        assert is_location_unset(0, 12.5) is False
        assert is_location_unset(None, None) is False

    def test_unknown_stage_field_rejected(self, writer):
        stages = (Stage(key="only", title="Only", description="", fields=("colour",)),)
        with pytest.raises(KeyError):
            SteppedSubmissionController(PROPERTY_SCHEMA, stages, writer)

    def test_no_stages_rejected(self, writer):
        with pytest.raises(ValueError):
            SteppedSubmissionController(PROPERTY_SCHEMA, (), writer)


# =============================================================================
# Advance
# =============================================================================


class TestAdvance:
    """Forward transitions."""

    def test_starts_at_first_stage(self, controller):
        assert controller.current_index == 0
        assert controller.is_first_stage is True
        assert controller.current_stage.key == "basic_info"

    def test_short_title_does_not_advance(self, controller, valid_draft, notifier):
        controller.update_draft(valid_draft, title="Apt")
        outcome = controller.advance()

        assert outcome.ok is False
        assert controller.current_index == 0
        assert outcome.field_errors == {"title": "Title must be at least 5 characters"}
        assert notifier.notices[-1].title == "Validation Error"
        assert notifier.notices[-1].variant == NoticeVariant.DESTRUCTIVE

    def test_stage_checks_only_its_own_fields(self, controller):
        controller.update_draft(
            title="Sunny two bed flat",
            property_type="apartment",
            listing_type="rent",
            price=900,
        )
        outcome = controller.advance()

        assert outcome.ok is True
        assert controller.current_stage.key == "specifications"

    def test_invalid_later_field_does_not_block_earlier_stage(self, controller, valid_draft):
        controller.update_draft(valid_draft, latitude=500)
        outcome = controller.advance()

        assert outcome.ok is True

    def test_optional_stage_fields_still_checked(self, controller, valid_draft):
        controller.update_draft(valid_draft, bedrooms=-1)
        advance_to(controller, "specifications")
        outcome = controller.advance()

        assert outcome.ok is False
        assert controller.current_stage.key == "specifications"
        assert outcome.field_errors == {"bedrooms": "Must be greater than or equal to 0"}

    def test_zero_zero_location_blocks_location_stage(self, controller, valid_draft):
        controller.update_draft(valid_draft, latitude=0, longitude=0)

        # 0/0 is a valid point as far as the schema is concerned
        assert PROPERTY_SCHEMA.validate(controller.draft).valid is True

        advance_to(controller, "location")
        outcome = controller.advance()

        assert outcome.ok is False
        assert controller.current_stage.key == "location"
        assert outcome.field_errors == {"location": "Please select a location on the map"}

    def test_zero_latitude_alone_is_a_real_location(self, controller, valid_draft):
        controller.update_draft(valid_draft, latitude=0, longitude=32.5)
        advance_to(controller, "images")

        assert controller.current_stage.key == "images"

    def test_no_images_advises_but_does_not_block(self, controller, valid_draft, notifier):
        controller.update_draft(valid_draft)
        advance_to(controller, "images")
        outcome = controller.advance()

        assert outcome.ok is True
        assert controller.current_stage.key == "review"
        assert [n.title for n in outcome.notices] == ["No Images"]
        assert notifier.notices[-1].description == (
            "Consider adding at least one image to attract more viewers"
        )

    def test_images_suppress_advisory(self, controller, valid_draft):
        controller.update_draft(valid_draft)
        controller.add_image("/uploads/properties/1_front.jpg")
        advance_to(controller, "images")
        outcome = controller.advance()

        assert outcome.ok is True
        assert outcome.notices == ()

    def test_removing_last_image_brings_advisory_back(self, controller, valid_draft):
        controller.update_draft(valid_draft)
        controller.add_image("/a.jpg")

        assert controller.remove_image("/a.jpg") is True
        assert controller.remove_image("/a.jpg") is False

        advance_to(controller, "images")
        outcome = controller.advance()
        assert [n.title for n in outcome.notices] == ["No Images"]

    def test_too_many_images_blocks(self, writer, valid_draft):
        controller = SteppedSubmissionController(
            PROPERTY_SCHEMA, build_property_stages(max_images=2), writer, notifier=ListNotifier()
        )
        controller.update_draft(valid_draft)
        controller.set_images(["/a.jpg", "/b.jpg", "/c.jpg"])
        advance_to(controller, "images")
        outcome = controller.advance()

        assert outcome.ok is False
        assert outcome.field_errors == {"images": "Maximum 2 images allowed"}

    def test_cannot_advance_past_last_stage(self, controller, valid_draft):
        controller.update_draft(valid_draft)
        advance_to(controller, "review")

        assert controller.is_last_stage is True
        with pytest.raises(InvalidTransitionError):
            controller.advance()


# =============================================================================
# Retreat
# =============================================================================


class TestRetreat:
    """Backward transitions."""

    def test_retreat_floors_at_zero(self, controller):
        outcome = controller.retreat()

        assert outcome.ok is True
        assert controller.current_index == 0

    def test_retreat_never_validates(self, controller, valid_draft):
        controller.update_draft(valid_draft)
        advance_to(controller, "location")
        controller.update_draft(title="no", price=-5)

        outcome = controller.retreat()

        assert outcome.ok is True
        assert outcome.violations == ()
        assert controller.current_stage.key == "specifications"

    def test_draft_survives_navigation(self, controller, valid_draft):
        controller.update_draft(valid_draft)
        advance_to(controller, "images")
        controller.retreat()
        controller.retreat()

        assert controller.draft == valid_draft


# =============================================================================
# Submit
# =============================================================================


class TestSubmit:
    """Final validation and the single store write."""

    def test_full_walk_writes_exactly_once(self, controller, valid_draft, writer, notifier):
        controller.update_draft(valid_draft)
        advance_to(controller, "review")
        outcome = controller.submit()

        assert outcome.ok is True
        assert outcome.submitted is True
        assert outcome.stage_key == "submitted"
        assert controller.is_submitted is True
        assert len(writer.calls) == 1
        assert notifier.notices[-1].title == "Success!"

    def test_writer_receives_normalised_record(self, controller, valid_draft, writer):
        controller.update_draft(valid_draft, title="  Beautiful Apartment  ", unexpected="x")
        controller.add_image("/uploads/properties/1_front.jpg")
        advance_to(controller, "review")
        controller.submit()

        record, images = writer.calls[0]
        assert record["title"] == "Beautiful Apartment"
        assert record["price"] == 1500
        assert record["bedrooms"] == 2
        assert record["area_sqft"] is None
        assert "unexpected" not in record
        assert images == ["/uploads/properties/1_front.jpg"]

    def test_result_is_writer_return_value(self, controller, valid_draft):
        controller.update_draft(valid_draft)
        advance_to(controller, "review")
        outcome = controller.submit()

        assert outcome.result["id"] == "prop-1"
        assert controller.result["id"] == "prop-1"

    def test_submit_only_from_last_stage(self, controller, valid_draft, writer):
        controller.update_draft(valid_draft)

        with pytest.raises(InvalidTransitionError):
            controller.submit()
        assert writer.calls == []

    def test_submit_revalidates_whole_draft(self, controller, valid_draft, writer, notifier):
        controller.update_draft(valid_draft)
        advance_to(controller, "review")
        controller.update_draft(title="Apt", latitude=0, longitude=0)

        outcome = controller.submit()

        assert outcome.ok is False
        assert set(outcome.field_errors) == {"title", "location"}
        assert writer.calls == []
        assert controller.is_submitted is False
        assert notifier.notices[-1].description == "Please complete all required fields correctly"

    def test_store_failure_keeps_draft_on_last_stage(self, valid_draft, notifier):
        writer = RecordingWriter(fail_times=1)
        controller = SteppedSubmissionController(
            PROPERTY_SCHEMA, PROPERTY_STAGES, writer, notifier=notifier
        )
        controller.update_draft(valid_draft)
        advance_to(controller, "review")

        with pytest.raises(StoreError, match="connection reset"):
            controller.submit()

        assert controller.current_stage.key == "review"
        assert controller.draft == valid_draft
        assert controller.is_submitted is False
        assert controller.is_submitting is False
        assert notifier.notices[-1].variant == NoticeVariant.DESTRUCTIVE

        # The user may simply try again
        outcome = controller.submit()
        assert outcome.ok is True
        assert len(writer.calls) == 2

    def test_second_submit_while_outstanding_rejected(self, valid_draft):
        seen = {}

        def writer(record, images):
            seen["submitting"] = controller.is_submitting
            with pytest.raises(SubmissionInProgressError):
                controller.submit()
            with pytest.raises(SubmissionInProgressError):
                controller.update_draft(title="Changed mid-flight")
            return {"id": "prop-1"}

        controller = SteppedSubmissionController(
            PROPERTY_SCHEMA, PROPERTY_STAGES, writer, notifier=ListNotifier()
        )
        controller.update_draft(valid_draft)
        advance_to(controller, "review")
        outcome = controller.submit()

        assert seen["submitting"] is True
        assert outcome.ok is True
        assert controller.draft["title"] == "Beautiful Apartment"

    def test_submitted_is_terminal(self, controller, valid_draft, writer):
        controller.update_draft(valid_draft)
        advance_to(controller, "review")
        controller.submit()

        for action in (controller.submit, controller.advance, controller.retreat):
            with pytest.raises(InvalidTransitionError):
                action()
        with pytest.raises(InvalidTransitionError):
            controller.update_draft(title="Edited after submit")
        assert len(writer.calls) == 1

    def test_state_serialisation(self, controller, valid_draft):
        controller.update_draft(valid_draft)
        controller.advance()
        state = controller.to_dict()

        assert state["stage_index"] == 1
        assert state["stage_key"] == "specifications"
        assert state["submitted"] is False
        assert len(state["stages"]) == 5


# =============================================================================
# Draft Registry
# =============================================================================


class TestDraftRegistry:
    """Per-user draft bookkeeping."""

    def test_open_and_get(self, controller):
        registry = DraftRegistry()
        entry = registry.open("user-1", controller)

        assert registry.get(entry.draft_id, "user-1").controller is controller
        assert registry.count() == 1

    def test_other_users_cannot_see_draft(self, controller):
        registry = DraftRegistry()
        entry = registry.open("user-1", controller)

        with pytest.raises(NotFoundError):
            registry.get(entry.draft_id, "user-2")

    def test_discard(self, controller):
        registry = DraftRegistry()
        entry = registry.open("user-1", controller)

        assert registry.discard(entry.draft_id) is True
        assert registry.discard(entry.draft_id) is False
        with pytest.raises(NotFoundError):
            registry.get(entry.draft_id, "user-1")

    def test_list_for_owner(self, controller, writer):
        registry = DraftRegistry()
        registry.open("user-1", controller)
        registry.open("user-1", SteppedSubmissionController(PROPERTY_SCHEMA, PROPERTY_STAGES, writer))
        registry.open("user-2", SteppedSubmissionController(PROPERTY_SCHEMA, PROPERTY_STAGES, writer))

        assert len(registry.list_for_owner("user-1")) == 2
        assert len(registry.list_for_owner("user-3")) == 0
