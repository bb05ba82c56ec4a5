"""Unit tests for the credential store."""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from tests.factories.auth import ClientIdentityFactory
from tests.factories.settings import SettingsFactory
from zap_gateway.auth.credentials import (
    LEGACY_CLIENT_ID,
    ClientIdentity,
    CredentialStore,
)
from zap_gateway.auth.exceptions import ConfigurationError
from zap_gateway.core.config.settings import ApiClientSettings, AuthSettings


pytestmark = pytest.mark.unit


class TestFindByKey:
    """Tests for secret lookup."""

    def test_returns_matching_client(self) -> None:
        """Should return the client that owns the secret."""
        target = ClientIdentityFactory.with_secret("secret-b", client_id="b")
        store = CredentialStore(
            [ClientIdentityFactory.with_secret("secret-a", client_id="a"), target]
        )

        assert store.find_by_key("secret-b") == target

    def test_returns_none_for_unknown_secret(self) -> None:
        """Should return None when no client matches."""
        store = CredentialStore([ClientIdentityFactory.with_secret("secret-a")])

        assert store.find_by_key("secret-x") is None

    @pytest.mark.parametrize("secret", [None, ""])
    def test_returns_none_for_empty_secret(self, secret: str | None) -> None:
        """Should never match an absent secret."""
        store = CredentialStore([ClientIdentityFactory.with_secret("secret-a")])

        assert store.find_by_key(secret) is None

    def test_is_exact_match(self) -> None:
        """Should not match prefixes or differently cased secrets."""
        store = CredentialStore([ClientIdentityFactory.with_secret("Secret-A")])

        assert store.find_by_key("Secret") is None
        assert store.find_by_key("secret-a") is None
        assert store.find_by_key("Secret-A ") is None

    def test_empty_store_matches_nothing(self) -> None:
        """Should return None from an empty store."""
        assert CredentialStore().find_by_key("anything") is None


class TestFindById:
    """Tests for client id lookup."""

    def test_returns_client(self) -> None:
        """Should return the client registered under the id."""
        client = ClientIdentityFactory.build(client_id="ci-runner")
        store = CredentialStore([client])

        assert store.find_by_id("ci-runner") == client

    def test_returns_none_for_unknown_id(self) -> None:
        """Should return None for an unregistered id."""
        store = CredentialStore([ClientIdentityFactory.build(client_id="ci-runner")])

        assert store.find_by_id("other") is None
        assert store.find_by_id(None) is None


class TestConstruction:
    """Tests for building the store."""

    def test_rejects_duplicate_client_ids(self) -> None:
        """Should refuse two clients with the same id."""
        with pytest.raises(ConfigurationError, match="Duplicate client id"):
            CredentialStore(
                [
                    ClientIdentityFactory.build(client_id="dup"),
                    ClientIdentityFactory.build(client_id="dup"),
                ]
            )

    def test_secret_is_not_rendered(self) -> None:
        """Should keep the secret out of reprs."""
        client = ClientIdentity(client_id="a", shared_secret=SecretStr("hunter2"))

        assert "hunter2" not in repr(client)

    def test_from_settings_loads_clients(self) -> None:
        """Should register every configured client with its scopes."""
        store = CredentialStore.from_settings(SettingsFactory.build())

        assert len(store) == 2
        dashboard = store.find_by_id("dashboard")
        assert dashboard is not None
        assert dashboard.scopes == ("scan:read",)
        assert dashboard.name == "Read-only dashboard"

    def test_from_settings_skips_clients_without_key(self) -> None:
        """Should ignore entries with an empty key."""
        settings = SettingsFactory.build(
            auth=AuthSettings(
                clients=[
                    ApiClientSettings(client_id="empty", key=""),
                    ApiClientSettings(client_id="real", key="real-key"),
                ]
            )
        )

        store = CredentialStore.from_settings(settings)

        assert len(store) == 1
        assert store.find_by_id("empty") is None

    def test_from_settings_adds_legacy_key(self) -> None:
        """Should register the legacy key as an unrestricted client."""
        settings = SettingsFactory.build(LEGACY_API_KEY="legacy-secret")

        store = CredentialStore.from_settings(settings)
        client = store.find_by_key("legacy-secret")

        assert client is not None
        assert client.client_id == LEGACY_CLIENT_ID
        assert client.scopes == ("*",)
