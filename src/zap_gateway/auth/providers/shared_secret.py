"""Shared-secret authentication provider.

The caller sends a pre-shared key in a designated header (``X-API-Key`` by
default). The key is looked up in the credential store and the matching
client's scopes are granted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from zap_gateway.auth.exceptions import InvalidApiKeyError, MissingCredentialsError
from zap_gateway.auth.providers.models import AuthenticatedIdentity, CredentialType
from zap_gateway.observability.logging import get_logger


if TYPE_CHECKING:
    from starlette.requests import Request

    from zap_gateway.auth.credentials import CredentialStore

logger = get_logger(__name__)


class SharedSecretAuthProvider:
    """Authenticates requests by their pre-shared API key.

    Attributes:
        credential_store: Registry the key is looked up in.
        header_name: Header carrying the key.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        header_name: str = "X-API-Key",
    ) -> None:
        self.credential_store = credential_store
        self.header_name = header_name

    @property
    def provider_name(self) -> str:
        """Return provider name for logging."""
        return "shared_secret"

    @property
    def challenge(self) -> str:
        """Scheme advertised in ``WWW-Authenticate``."""
        return "API-Key"

    def extract_key(self, request: Request) -> str | None:
        """Return the stripped key from the request header, if any."""
        value = request.headers.get(self.header_name, "").strip()
        return value or None

    def authenticate_key(self, key: str | None) -> AuthenticatedIdentity:
        """Resolve a raw key to an identity.

        Raises:
            MissingCredentialsError: If no key was supplied.
            InvalidApiKeyError: If the key matches no client.
        """
        if not key:
            msg = f"Missing {self.header_name} header"
            raise MissingCredentialsError(msg)

        client = self.credential_store.find_by_key(key)
        if client is None:
            logger.warning("Rejected unknown API key")
            msg = "Invalid API key"
            raise InvalidApiKeyError(msg)

        logger.debug("Authenticated via shared secret", client_id=client.client_id)
        return AuthenticatedIdentity(
            client_id=client.client_id,
            credential_type=CredentialType.SHARED_SECRET,
            scopes=client.scopes,
        )

    async def authenticate(self, request: Request) -> AuthenticatedIdentity:
        """Authenticate ``request`` by its API key header."""
        return self.authenticate_key(self.extract_key(request))
