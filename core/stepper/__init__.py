"""
Estatehub - Stepped Submission Module

Multi-step forms over a single draft: stage-wise partial validation on the
way forward, one full validation and one store write at the end.
"""

from core.stepper.stages import (
    Stage,
    StageGuard,
    StageAdvisory,
    PROPERTY_STAGES,
    DEFAULT_MAX_IMAGES,
    build_property_stages,
    is_location_unset,
    require_location_selected,
    limit_images,
    recommend_images,
)
from core.stepper.controller import (
    SteppedSubmissionController,
    StepOutcome,
    SubmissionWriter,
)
from core.stepper.drafts import (
    DraftEntry,
    DraftRegistry,
)

__all__ = [
    # Stages
    "Stage",
    "StageGuard",
    "StageAdvisory",
    "PROPERTY_STAGES",
    "DEFAULT_MAX_IMAGES",
    "build_property_stages",
    "is_location_unset",
    "require_location_selected",
    "limit_images",
    "recommend_images",
    # Controller
    "SteppedSubmissionController",
    "StepOutcome",
    "SubmissionWriter",
    # Drafts
    "DraftEntry",
    "DraftRegistry",
]
