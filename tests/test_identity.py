"""
Tests for Session Tokens

Tests covering:
1. Valid token resolves to the current user
2. Missing / unknown / revoked / expired token is rejected
3. Sessions persist across repository reloads
"""

from __future__ import annotations

import pytest
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from core.errors import NotAuthenticatedError
from core.marketplace.identity import (
    TOKEN_BYTES,
    CurrentUser,
    SessionRepository,
    SessionStatus,
    SessionValidationFailure,
    SessionValidationSuccess,
    UserSession,
    generate_session_token,
    get_current_user,
    reset_session_repository,
    validate_session,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_persist_path():
    """Create a temporary file path for persistence."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield str(Path(tmpdir) / "sessions.json")


@pytest.fixture
def repository(temp_persist_path):
    """Create a fresh repository for each test."""
    reset_session_repository()
    return SessionRepository(persist_path=temp_persist_path)


@pytest.fixture
def session(repository):
    return repository.create_session("owner@example.com", user_id="user-1")


# =============================================================================
# Token Generation
# =============================================================================


class TestTokenGeneration:
    """Token values."""

    def test_tokens_are_unique(self):
        tokens = {generate_session_token() for _ in range(100)}
        assert len(tokens) == 100

    def test_token_length(self):
        # URL-safe base64 of TOKEN_BYTES bytes
        assert len(generate_session_token()) >= TOKEN_BYTES

    def test_session_requires_email(self):
        with pytest.raises(ValueError):
            UserSession(
                session_id="SES-1",
                token="abc",
                user_id="user-1",
                email="",
                status=SessionStatus.ACTIVE,
                created_at=datetime.now(timezone.utc),
                expires_at=None,
            )


# =============================================================================
# Validation
# =============================================================================


class TestValidateSession:
    """Resolving bearer tokens."""

    def test_valid_token(self, repository, session):
        result = validate_session(session.token, repository)

        assert isinstance(result, SessionValidationSuccess)
        assert result.user == CurrentUser(id="user-1", email="owner@example.com")

    def test_new_user_id_allocated(self, repository):
        session = repository.create_session("new@example.com")

        assert session.user_id
        assert session.user.email == "new@example.com"

    def test_missing_token(self, repository):
        result = validate_session(None, repository)

        assert isinstance(result, SessionValidationFailure)
        assert result.error_code == "MISSING"

    def test_unknown_token(self, repository):
        result = validate_session("not-a-token", repository)

        assert result.error_code == "NOT_FOUND"
        assert result.reason == "Invalid session"

    def test_revoked_token(self, repository, session):
        assert repository.revoke(session.token) is True

        result = validate_session(session.token, repository)
        assert result.error_code == "REVOKED"

    def test_revoke_unknown(self, repository):
        assert repository.revoke("not-a-token") is False

    def test_expired_token(self, repository, session):
        session.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)

        result = validate_session(session.token, repository)
        assert result.error_code == "EXPIRED"

    def test_no_expiry(self, temp_persist_path):
        repository = SessionRepository(temp_persist_path, expiry_hours=None)
        session = repository.create_session("owner@example.com")

        assert session.expires_at is None
        assert session.is_valid is True

    def test_get_current_user_raises(self, repository):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            get_current_user("", repository)

        assert exc_info.value.error_code == "MISSING"
        assert exc_info.value.reason == "Not authenticated"

    def test_get_current_user(self, repository, session):
        assert get_current_user(session.token, repository).id == "user-1"


# =============================================================================
# Persistence
# =============================================================================


class TestPersistence:
    """JSON file persistence."""

    def test_sessions_survive_reload(self, temp_persist_path, repository, session):
        reloaded = SessionRepository(temp_persist_path)

        restored = reloaded.get_by_token(session.token)
        assert restored.user_id == "user-1"
        assert restored.expires_at == session.expires_at

    def test_revocation_survives_reload(self, temp_persist_path, repository, session):
        repository.revoke(session.token)

        reloaded = SessionRepository(temp_persist_path)
        assert reloaded.get_by_token(session.token).status == SessionStatus.REVOKED

    def test_list_for_user(self, repository, session):
        repository.create_session("owner@example.com", user_id="user-1")
        repository.create_session("other@example.com", user_id="user-2")

        assert len(repository.list_for_user("user-1")) == 2
        assert repository.count() == 3
