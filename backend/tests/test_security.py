"""Tests for API key authentication and caller privileges."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from concept_dictionary.core.config import ApiKeyGrant, settings
from concept_dictionary.core.privileges import Privilege, UserContext
from concept_dictionary.core.security import get_user_context


@pytest.fixture
def request_mock() -> MagicMock:
    request = MagicMock()
    request.client.host = "10.0.0.1"
    return request


@pytest.fixture
def api_keys(monkeypatch) -> None:
    monkeypatch.setattr(settings, "auth_enabled", True)
    monkeypatch.setattr(
        settings,
        "api_keys",
        {
            "viewer-key": ApiKeyGrant(username="viewer", privileges=[Privilege.VIEW_CONCEPTS]),
            "admin-key": ApiKeyGrant(username="admin", privileges=list(Privilege)),
        },
    )


class TestGetUserContext:
    """Tests for get_user_context."""

    def test_auth_disabled_returns_system_user(self, request_mock, monkeypatch) -> None:
        """When auth is disabled, every request runs as the system user."""
        monkeypatch.setattr(settings, "auth_enabled", False)
        user = get_user_context(request_mock, api_key=None)
        assert user == UserContext.system()

    def test_missing_key_raises_401(self, request_mock, api_keys) -> None:
        """When auth is enabled, missing key raises 401."""
        with pytest.raises(HTTPException) as exc_info:
            get_user_context(request_mock, api_key=None)
        assert exc_info.value.status_code == 401

    def test_unknown_key_raises_403(self, request_mock, api_keys) -> None:
        """When auth is enabled, unknown key raises 403."""
        with pytest.raises(HTTPException) as exc_info:
            get_user_context(request_mock, api_key="wrong-key")
        assert exc_info.value.status_code == 403

    def test_known_key_maps_to_grant(self, request_mock, api_keys) -> None:
        """A configured key yields its user name and privileges."""
        user = get_user_context(request_mock, api_key="viewer-key")
        assert user.username == "viewer"
        assert user.privileges == frozenset({Privilege.VIEW_CONCEPTS})

    def test_request_without_client(self, api_keys) -> None:
        """Requests without client info still authenticate."""
        request = MagicMock()
        request.client = None
        user = get_user_context(request, api_key="admin-key")
        assert user.has_privilege(Privilege.PURGE_CONCEPTS)


class TestApiKeyGrant:
    """Tests for API key configuration."""

    def test_privileges_parse_from_names(self) -> None:
        """Privileges may be given by their display names."""
        grant = ApiKeyGrant.model_validate({"username": "clerk", "privileges": ["Add Concept Proposals"]})
        assert grant.privileges == [Privilege.ADD_CONCEPT_PROPOSALS]

    def test_privileges_default_empty(self) -> None:
        grant = ApiKeyGrant(username="nobody")
        assert grant.privileges == []
