"""Unit tests for the auth provider factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.factories.auth import ClientIdentityFactory
from tests.factories.settings import TEST_SECRET_KEY
from zap_gateway.auth.credentials import CredentialStore
from zap_gateway.auth.exceptions import ConfigurationError
from zap_gateway.auth.jwt import TokenService
from zap_gateway.auth.providers import (
    OpenAuthProvider,
    SharedSecretAuthProvider,
    TokenAuthProvider,
    create_auth_provider,
)
from zap_gateway.core.config import SecurityMode


if TYPE_CHECKING:
    from zap_gateway.auth.revocation import RevocationStore


pytestmark = pytest.mark.unit


@pytest.fixture
def credential_store() -> CredentialStore:
    """Store with one client."""
    return CredentialStore([ClientIdentityFactory.build()])


class TestCreateAuthProvider:
    """Tests for provider selection per mode."""

    def test_open_mode(self, revocation_store: RevocationStore) -> None:
        """Should build the open provider even without clients."""
        provider = create_auth_provider(
            SecurityMode.OPEN,
            credential_store=CredentialStore(),
            revocation_store=revocation_store,
        )

        assert isinstance(provider, OpenAuthProvider)

    def test_shared_secret_mode(
        self, credential_store: CredentialStore, revocation_store: RevocationStore
    ) -> None:
        """Should build the shared-secret provider with the configured header."""
        provider = create_auth_provider(
            SecurityMode.SHARED_SECRET,
            credential_store=credential_store,
            revocation_store=revocation_store,
            api_key_header="X-Gateway-Key",
        )

        assert isinstance(provider, SharedSecretAuthProvider)
        assert provider.header_name == "X-Gateway-Key"

    def test_token_mode(
        self, credential_store: CredentialStore, revocation_store: RevocationStore
    ) -> None:
        """Should build the token provider with a shared-secret fallback."""
        provider = create_auth_provider(
            SecurityMode.TOKEN,
            credential_store=credential_store,
            revocation_store=revocation_store,
            token_service=TokenService(TEST_SECRET_KEY),
        )

        assert isinstance(provider, TokenAuthProvider)
        assert isinstance(provider.fallback, SharedSecretAuthProvider)

    def test_token_mode_requires_token_service(
        self, credential_store: CredentialStore, revocation_store: RevocationStore
    ) -> None:
        """Should refuse token mode without a signing key."""
        with pytest.raises(ConfigurationError, match="JWT_SECRET_KEY"):
            create_auth_provider(
                SecurityMode.TOKEN,
                credential_store=credential_store,
                revocation_store=revocation_store,
            )

    @pytest.mark.parametrize("mode", [SecurityMode.SHARED_SECRET, SecurityMode.TOKEN])
    def test_secure_modes_require_clients(
        self, mode: SecurityMode, revocation_store: RevocationStore
    ) -> None:
        """Should refuse to start a secure mode nobody can authenticate to."""
        with pytest.raises(ConfigurationError, match="requires at least one client"):
            create_auth_provider(
                mode,
                credential_store=CredentialStore(),
                revocation_store=revocation_store,
                token_service=TokenService(TEST_SECRET_KEY),
            )
