"""Authentication providers package.

This package provides one provider per security mode, each implementing
the AuthProvider protocol. The factory module picks the provider for the
configured mode.

Available providers:
- OpenAuthProvider: Accepts every request (trusted deployments only)
- SharedSecretAuthProvider: Validates the X-API-Key header
- TokenAuthProvider: Validates bearer access tokens, falling back to the API key

Usage:
    from zap_gateway.auth.providers import create_auth_provider

    provider = create_auth_provider(mode, credential_store=..., revocation_store=...)
    identity = await provider.authenticate(request)
"""

from zap_gateway.auth.providers.factory import create_auth_provider
from zap_gateway.auth.providers.models import AuthenticatedIdentity, CredentialType
from zap_gateway.auth.providers.open import OpenAuthProvider
from zap_gateway.auth.providers.protocol import AuthProvider
from zap_gateway.auth.providers.shared_secret import SharedSecretAuthProvider
from zap_gateway.auth.providers.token import TokenAuthProvider, extract_bearer_token


__all__ = [
    "AuthProvider",
    "AuthenticatedIdentity",
    "CredentialType",
    "OpenAuthProvider",
    "SharedSecretAuthProvider",
    "TokenAuthProvider",
    "create_auth_provider",
    "extract_bearer_token",
]
