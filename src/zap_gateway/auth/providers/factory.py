"""Authentication provider factory.

This module builds the provider for the configured security mode. Every
mode is handled by an exhaustive ``match`` so that adding a mode without
wiring it up is a type error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from zap_gateway.auth.exceptions import ConfigurationError
from zap_gateway.auth.providers.open import OpenAuthProvider
from zap_gateway.auth.providers.shared_secret import SharedSecretAuthProvider
from zap_gateway.auth.providers.token import TokenAuthProvider
from zap_gateway.core.config import SecurityMode
from zap_gateway.observability.logging import get_logger


if TYPE_CHECKING:
    from zap_gateway.auth.credentials import CredentialStore
    from zap_gateway.auth.jwt import TokenService
    from zap_gateway.auth.providers.protocol import AuthProvider
    from zap_gateway.auth.revocation import RevocationStore

logger = get_logger(__name__)


def create_auth_provider(
    mode: SecurityMode,
    *,
    credential_store: CredentialStore,
    revocation_store: RevocationStore,
    token_service: TokenService | None = None,
    api_key_header: str = "X-API-Key",
) -> AuthProvider:
    """Create the authentication provider for ``mode``.

    Args:
        mode: Configured security mode.
        credential_store: Registered clients.
        revocation_store: Revoked token ids (token mode).
        token_service: Token validator; required in token mode.
        api_key_header: Header carrying the shared secret.

    Returns:
        Configured AuthProvider instance.

    Raises:
        ConfigurationError: If the mode lacks what it needs to be secure.
    """
    logger.info("Creating auth provider", mode=mode.value)

    match mode:
        case SecurityMode.OPEN:
            return OpenAuthProvider()

        case SecurityMode.SHARED_SECRET:
            _require_clients(mode, credential_store)
            return SharedSecretAuthProvider(credential_store, api_key_header)

        case SecurityMode.TOKEN:
            if token_service is None:
                msg = "JWT_SECRET_KEY is required when security mode is 'token'"
                raise ConfigurationError(msg)
            _require_clients(mode, credential_store)
            return TokenAuthProvider(
                token_service=token_service,
                revocation_store=revocation_store,
                fallback=SharedSecretAuthProvider(credential_store, api_key_header),
            )

        case _:
            assert_never(mode)


def _require_clients(mode: SecurityMode, credential_store: CredentialStore) -> None:
    if len(credential_store) == 0:
        msg = (
            f"Security mode '{mode.value}' requires at least one client in "
            "auth.clients or LEGACY_API_KEY"
        )
        raise ConfigurationError(msg)
