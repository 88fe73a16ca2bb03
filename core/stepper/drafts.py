"""
Draft Registry - In-Memory Drafts Owned by One User Each

Each draft is one SteppedSubmissionController. Drafts are never shared
between users and are dropped once submitted or abandoned.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.errors import NotFoundError
from core.stepper.controller import SteppedSubmissionController


@dataclass
class DraftEntry:
    draft_id: str
    owner_id: str
    controller: SteppedSubmissionController
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class DraftRegistry:
    """Holds open drafts keyed by draft id."""

    def __init__(self):
        self._drafts: dict[str, DraftEntry] = {}
        self._lock = threading.Lock()

    def open(self, owner_id: str, controller: SteppedSubmissionController) -> DraftEntry:
        """Register a new draft for owner_id."""
        entry = DraftEntry(
            draft_id=str(uuid.uuid4()),
            owner_id=owner_id,
            controller=controller,
        )
        with self._lock:
            self._drafts[entry.draft_id] = entry
        return entry

    def get(self, draft_id: str, owner_id: str) -> DraftEntry:
        """
        Fetch a draft owned by owner_id.

        Raises:
            NotFoundError: If the draft is missing or owned by someone else
        """
        entry = self._drafts.get(draft_id)
        if entry is None or entry.owner_id != owner_id:
            raise NotFoundError("drafts", draft_id)
        return entry

    def discard(self, draft_id: str) -> bool:
        with self._lock:
            return self._drafts.pop(draft_id, None) is not None

    def list_for_owner(self, owner_id: str) -> list[DraftEntry]:
        return [e for e in self._drafts.values() if e.owner_id == owner_id]

    def count(self) -> int:
        return len(self._drafts)

