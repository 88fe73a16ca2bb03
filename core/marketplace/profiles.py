"""
User profiles.

One profile row per user, keyed by the user's id.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from core.marketplace.identity import CurrentUser
from core.marketplace.store import PROFILES, RecordStore
from core.validation.schemas import PROFILE_SCHEMA


logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, store: RecordStore):
        self._store = store

    def get_profile(self, user: CurrentUser) -> Optional[dict]:
        return self._store.get(PROFILES, user.id)

    def update_profile(self, user: CurrentUser, changes: Mapping[str, Any]) -> dict:
        """
        Validate and save the caller's profile, creating it on first save.

        An empty phone is stored as None.

        Raises:
            ValidationError: If the form fails validation
        """
        values = PROFILE_SCHEMA.validate(changes).raise_for_violations()
        values["phone"] = values.get("phone") or None
        values["email"] = user.email

        if self._store.get(PROFILES, user.id) is None:
            saved = self._store.insert(PROFILES, {"id": user.id, **values})[0]
            logger.info("Profile created for %s", user.id)
        else:
            saved = self._store.update(PROFILES, values, {"id": user.id})[0]
        return saved
