"""
Session Tokens - Identity for Marketplace Users

Opaque bearer tokens bound to a user id and email. The web layer resolves
the Authorization header into a CurrentUser; every service takes that user
explicitly instead of reading ambient auth state.

Principles:
1. Tokens are cryptographically secure
2. Tokens expire and can be revoked
3. Token values are never logged, only session ids
"""

from __future__ import annotations

import json
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Final, Optional, Union

from core.errors import NotAuthenticatedError


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# 32 bytes = 256 bits = 43 URL-safe base64 chars
TOKEN_BYTES: Final[int] = 32

DEFAULT_EXPIRY_HOURS: Final[int] = 24 * 7


class SessionStatus(Enum):
    """Status of a session token."""

    ACTIVE = "active"
    REVOKED = "revoked"


# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller, as seen by services."""

    id: str
    email: str


@dataclass
class UserSession:
    """A bearer session for one user."""

    session_id: str
    token: str
    user_id: str
    email: str
    status: SessionStatus
    created_at: datetime
    expires_at: Optional[datetime]

    def __post_init__(self):
        if not self.token:
            raise ValueError("token is required")
        if not self.user_id:
            raise ValueError("user_id is required")
        if not self.email:
            raise ValueError("email is required")

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) > self.expires_at

    @property
    def is_valid(self) -> bool:
        return self.status == SessionStatus.ACTIVE and not self.is_expired

    @property
    def user(self) -> CurrentUser:
        return CurrentUser(id=self.user_id, email=self.email)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "token": self.token,
            "user_id": self.user_id,
            "email": self.email,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserSession":
        return cls(
            session_id=data["session_id"],
            token=data["token"],
            user_id=data["user_id"],
            email=data["email"],
            status=SessionStatus(data["status"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=(
                datetime.fromisoformat(data["expires_at"])
                if data.get("expires_at")
                else None
            ),
        )


def generate_session_token() -> str:
    """Cryptographically secure, URL-safe token value."""
    return secrets.token_urlsafe(TOKEN_BYTES)


# =============================================================================
# Repository
# =============================================================================


class SessionRepository:
    """
    Repository for issuing and resolving session tokens.

    Uses JSON file persistence when a path is given.
    """

    def __init__(
        self,
        persist_path: Optional[str] = None,
        expiry_hours: Optional[int] = DEFAULT_EXPIRY_HOURS,
    ):
        """
        Initialise repository.

        Args:
            persist_path: Path to JSON file for persistence
            expiry_hours: Lifetime of new sessions; None means no expiry
        """
        self._sessions: dict[str, UserSession] = {}  # token -> session
        self._expiry_hours = expiry_hours
        self._persist_path = Path(persist_path) if persist_path else None

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self) -> None:
        if not self._persist_path:
            return

        data = {
            "sessions": [s.to_dict() for s in self._sessions.values()],
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2))

    def _load_from_file(self) -> None:
        try:
            data = json.loads(self._persist_path.read_text())
            for item in data.get("sessions", []):
                session = UserSession.from_dict(item)
                self._sessions[session.token] = session
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning("Could not load session data from %s: %s", self._persist_path, e)

    def create_session(
        self,
        email: str,
        user_id: Optional[str] = None,
    ) -> UserSession:
        """
        Issue a new session.

        Args:
            email: User's email
            user_id: Existing user id (a new uuid is allocated if omitted)

        Returns:
            New active UserSession
        """
        now = datetime.now(timezone.utc)
        token = generate_session_token()
        while token in self._sessions:
            token = generate_session_token()

        session = UserSession(
            session_id=f"SES-{uuid.uuid4().hex[:12].upper()}",
            token=token,
            user_id=user_id or str(uuid.uuid4()),
            email=email,
            status=SessionStatus.ACTIVE,
            created_at=now,
            expires_at=now + timedelta(hours=self._expiry_hours) if self._expiry_hours else None,
        )
        self._sessions[token] = session
        self._save_to_file()
        logger.info("Session %s issued for user %s", session.session_id, session.user_id)
        return session

    def get_by_token(self, token: str) -> Optional[UserSession]:
        return self._sessions.get(token)

    def revoke(self, token: str) -> bool:
        """
        Revoke a session (sign out).

        Returns:
            True if revoked, False if the token is unknown
        """
        session = self._sessions.get(token)
        if not session:
            return False
        session.status = SessionStatus.REVOKED
        self._save_to_file()
        logger.info("Session %s revoked", session.session_id)
        return True

    def list_for_user(self, user_id: str) -> list[UserSession]:
        return [s for s in self._sessions.values() if s.user_id == user_id]

    def count(self) -> int:
        return len(self._sessions)


# =============================================================================
# Validation Results
# =============================================================================


@dataclass(frozen=True)
class SessionValidationSuccess:
    """Returned when the session token is valid."""

    session: UserSession
    user: CurrentUser


@dataclass(frozen=True)
class SessionValidationFailure:
    """Returned when the session token is invalid."""

    reason: str
    error_code: str  # MISSING, NOT_FOUND, REVOKED, EXPIRED


SessionValidationResult = Union[SessionValidationSuccess, SessionValidationFailure]


def validate_session(
    token: Optional[str],
    repository: SessionRepository,
) -> SessionValidationResult:
    """
    Validate a session token.

    Args:
        token: Bearer token from the request
        repository: Session repository

    Returns:
        SessionValidationSuccess if valid, SessionValidationFailure otherwise
    """
    if not token:
        return SessionValidationFailure(reason="Not authenticated", error_code="MISSING")

    session = repository.get_by_token(token)
    if not session:
        return SessionValidationFailure(reason="Invalid session", error_code="NOT_FOUND")

    if session.status == SessionStatus.REVOKED:
        return SessionValidationFailure(reason="Session has been signed out", error_code="REVOKED")

    if session.is_expired:
        return SessionValidationFailure(reason="Session has expired", error_code="EXPIRED")

    return SessionValidationSuccess(session=session, user=session.user)


def get_current_user(token: Optional[str], repository: SessionRepository) -> CurrentUser:
    """
    Resolve a bearer token to the current user.

    Raises:
        NotAuthenticatedError: If the token is missing, unknown, revoked or expired
    """
    result = validate_session(token, repository)
    if isinstance(result, SessionValidationFailure):
        logger.info("Authentication rejected: %s", result.error_code)
        raise NotAuthenticatedError(result.reason, error_code=result.error_code)
    return result.user


# =============================================================================
# Singleton Instance
# =============================================================================

_repository_instance: Optional[SessionRepository] = None


def get_session_repository(persist_path: Optional[str] = None) -> SessionRepository:
    """
    Get the session repository singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)
    """
    global _repository_instance
    if _repository_instance is None:
        _repository_instance = SessionRepository(persist_path or "data/sessions.json")
    return _repository_instance


def reset_session_repository() -> None:
    """Reset the singleton instance (for testing)."""
    global _repository_instance
    _repository_instance = None
