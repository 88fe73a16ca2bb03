"""
Stepped Submission Controller - Multi-Step Draft Workflow

Drives one evolving draft through an ordered list of stages:

    stage 0 -> ... -> stage N-1 -> submitted

advance validates only the current stage's fields (a projection of the full
schema) plus that stage's guards. retreat never validates. submit is only
possible from the last stage and runs the full schema and every guard before
making exactly one call to the store writer.

A failed store write leaves the controller on the last stage with the draft
intact and re-raises the StoreError to the caller.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from core.errors import InvalidTransitionError, StoreError, SubmissionInProgressError
from core.notifications import LoggingNotifier, Notice, NoticeVariant, Notifier
from core.stepper.stages import Stage
from core.validation.formatting import violations_to_field_map
from core.validation.rules import Violation
from core.validation.validator import Schema


logger = logging.getLogger(__name__)


SubmissionWriter = Callable[[dict[str, Any], list[str]], Any]


# =============================================================================
# Outcome
# =============================================================================


@dataclass(frozen=True)
class StepOutcome:
    """Result of one advance, retreat or submit call."""

    ok: bool
    stage_index: int
    stage_key: str
    violations: tuple[Violation, ...] = ()
    notices: tuple[Notice, ...] = ()
    submitted: bool = False
    result: Any = None

    @property
    def field_errors(self) -> dict[str, str]:
        return violations_to_field_map(self.violations)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "stage_index": self.stage_index,
            "stage_key": self.stage_key,
            "submitted": self.submitted,
            "errors": [v.to_dict() for v in self.violations],
            "field_errors": self.field_errors,
            "notices": [n.to_dict() for n in self.notices],
        }


# =============================================================================
# Controller
# =============================================================================


class SteppedSubmissionController:
    """
    Holds one draft across an ordered sequence of stages.

    Usage:
        controller = SteppedSubmissionController(PROPERTY_SCHEMA, PROPERTY_STAGES, writer)
        controller.update_draft(title="Sunny two bed flat", ...)
        outcome = controller.advance()
        if not outcome.ok:
            # render outcome.field_errors inline
    """

    def __init__(
        self,
        schema: Schema,
        stages: Sequence[Stage],
        writer: SubmissionWriter,
        notifier: Optional[Notifier] = None,
        draft: Optional[Mapping[str, Any]] = None,
        images: Optional[Iterable[str]] = None,
    ):
        """
        Initialise the controller at stage 0.

        Args:
            schema: Full-record schema; the single source of field rules
            stages: Ordered stages, each owning a subset of schema fields
            writer: Store-write collaborator, called once on submit with
                    (normalised record, image urls)
            notifier: Receives advisory and error notices
            draft: Initial draft values
            images: Initial image urls

        Raises:
            ValueError: If no stages are given
            KeyError: If a stage names a field the schema does not have
        """
        if not stages:
            raise ValueError("At least one stage is required")
        for stage in stages:
            schema.project(stage.fields)

        self._schema = schema
        self._stages = tuple(stages)
        self._writer = writer
        self._notifier = notifier or LoggingNotifier()
        self._draft: dict[str, Any] = dict(draft or {})
        self._images: list[str] = list(images or [])
        self._index = 0
        self._submitted = False
        self._result: Any = None
        self._in_flight = threading.Lock()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_stage(self) -> Stage:
        return self._stages[self._index]

    @property
    def is_first_stage(self) -> bool:
        return self._index == 0

    @property
    def is_last_stage(self) -> bool:
        return self._index == len(self._stages) - 1

    @property
    def is_submitted(self) -> bool:
        return self._submitted

    @property
    def is_submitting(self) -> bool:
        return self._in_flight.locked()

    @property
    def draft(self) -> dict[str, Any]:
        """Copy of the current draft."""
        return dict(self._draft)

    @property
    def images(self) -> list[str]:
        return list(self._images)

    @property
    def result(self) -> Any:
        """Store writer's return value once submitted."""
        return self._result

    def _ensure_editable(self) -> None:
        if self._submitted:
            raise InvalidTransitionError("Draft has already been submitted")
        if self.is_submitting:
            raise SubmissionInProgressError("A submission for this draft is in progress")

    def _outcome(self, ok: bool, **kwargs: Any) -> StepOutcome:
        return StepOutcome(
            ok=ok,
            stage_index=self._index,
            stage_key="submitted" if self._submitted else self.current_stage.key,
            submitted=self._submitted,
            **kwargs,
        )

    def _notify(self, notice: Notice) -> Notice:
        self._notifier.notify(notice)
        return notice

    # =========================================================================
    # Draft Editing
    # =========================================================================

    def update_draft(self, values: Optional[Mapping[str, Any]] = None, **fields: Any) -> None:
        """Merge field values into the draft. Nothing is validated here."""
        self._ensure_editable()
        if values:
            self._draft.update(values)
        self._draft.update(fields)

    def set_images(self, urls: Iterable[str]) -> None:
        self._ensure_editable()
        self._images = list(urls)

    def add_image(self, url: str) -> None:
        self._ensure_editable()
        self._images.append(url)

    def remove_image(self, url: str) -> bool:
        """Remove an image url. Returns False if it was not attached."""
        self._ensure_editable()
        if url in self._images:
            self._images.remove(url)
            return True
        return False

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_stage(self, index: Optional[int] = None) -> list[Violation]:
        """
        Validate the fields and guards owned by one stage.

        Args:
            index: Stage index (default: current stage)

        Returns:
            Violations, empty if the stage passes
        """
        stage = self._stages[self._index if index is None else index]
        violations: list[Violation] = []
        if stage.fields:
            violations.extend(self._schema.validate(self._draft, fields=stage.fields).violations)
        violations.extend(stage.run_guards(self._draft, self._images))
        return violations

    def validate_all(self) -> tuple[Optional[dict[str, Any]], list[Violation]]:
        """
        Full-record validation plus every stage guard.

        Returns:
            (normalised record or None, violations)
        """
        result = self._schema.validate(self._draft)
        violations = list(result.violations)
        for stage in self._stages:
            violations.extend(stage.run_guards(self._draft, self._images))
        if violations:
            return None, violations
        return result.value, []

    # =========================================================================
    # Transitions
    # =========================================================================

    def advance(self) -> StepOutcome:
        """
        Move from stage i to i+1 if stage i validates.

        On failure the stage does not change and the violations are returned.

        Raises:
            InvalidTransitionError: At the last stage or after submission
        """
        self._ensure_editable()
        if self.is_last_stage:
            raise InvalidTransitionError("The last stage submits; it cannot advance")

        stage = self.current_stage
        violations = self.validate_stage()
        if violations:
            logger.debug(
                "Stage %s rejected: %s",
                stage.key,
                ", ".join(v.field for v in violations),
            )
            notice = self._notify(Notice(
                title="Validation Error",
                description="Please fix the errors before continuing",
                variant=NoticeVariant.DESTRUCTIVE,
            ))
            return self._outcome(False, violations=tuple(violations), notices=(notice,))

        notices = [self._notify(n) for n in stage.run_advisories(self._draft, self._images)]
        self._index += 1
        return self._outcome(True, notices=tuple(notices))

    def retreat(self) -> StepOutcome:
        """Move back one stage (floor at 0). Never validates."""
        self._ensure_editable()
        self._index = max(self._index - 1, 0)
        return self._outcome(True)

    def submit(self) -> StepOutcome:
        """
        Validate the whole draft and hand it to the store writer.

        Returns:
            StepOutcome; ok=False with violations if validation fails

        Raises:
            InvalidTransitionError: If not at the last stage, or already submitted
            SubmissionInProgressError: If a submit is already outstanding
            StoreError: If the writer fails (controller state is unchanged)
        """
        if self._submitted:
            raise InvalidTransitionError("Draft has already been submitted")
        if not self.is_last_stage:
            raise InvalidTransitionError("Submit is only available from the last stage")
        if not self._in_flight.acquire(blocking=False):
            raise SubmissionInProgressError("A submission for this draft is in progress")

        try:
            record, violations = self.validate_all()
            if violations:
                notice = self._notify(Notice(
                    title="Validation Error",
                    description="Please complete all required fields correctly",
                    variant=NoticeVariant.DESTRUCTIVE,
                ))
                return self._outcome(False, violations=tuple(violations), notices=(notice,))

            try:
                written = self._writer(dict(record), list(self._images))
            except StoreError as e:
                logger.error("Store write failed for %s submission: %s", self._schema.name, e)
                self._notify(Notice(
                    title="Error",
                    description=str(e) or "Failed to save",
                    variant=NoticeVariant.DESTRUCTIVE,
                ))
                raise

            self._submitted = True
            self._result = written
            notice = self._notify(Notice(
                title="Success!",
                description="Submitted successfully",
                variant=NoticeVariant.SUCCESS,
            ))
            return self._outcome(True, notices=(notice,), result=written)
        finally:
            self._in_flight.release()

    def to_dict(self) -> dict:
        return {
            "stage_index": self._index,
            "stage_key": "submitted" if self._submitted else self.current_stage.key,
            "stages": [s.to_dict() for s in self._stages],
            "draft": self.draft,
            "images": self.images,
            "submitted": self._submitted,
        }
