"""Bearer-token authentication provider.

Access tokens issued by ``/auth/token`` are validated locally. A request
without a bearer token falls back to the shared-secret provider, so token
mode adds a credential type rather than replacing API keys.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from zap_gateway.auth.exceptions import TokenRevokedError, WrongTokenTypeError
from zap_gateway.auth.jwt import TokenType
from zap_gateway.auth.providers.models import AuthenticatedIdentity, CredentialType
from zap_gateway.observability.logging import get_logger


if TYPE_CHECKING:
    from starlette.requests import Request

    from zap_gateway.auth.jwt import TokenService
    from zap_gateway.auth.providers.shared_secret import SharedSecretAuthProvider
    from zap_gateway.auth.revocation import RevocationStore

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, if present."""
    header = request.headers.get("authorization", "")
    if header[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


class TokenAuthProvider:
    """Validates bearer access tokens, falling back to the shared secret.

    Attributes:
        token_service: Verifies signatures and expiry.
        revocation_store: Consulted after a token passes validation.
        fallback: Provider used when no bearer token is sent.
    """

    def __init__(
        self,
        token_service: TokenService,
        revocation_store: RevocationStore,
        fallback: SharedSecretAuthProvider,
    ) -> None:
        self.token_service = token_service
        self.revocation_store = revocation_store
        self.fallback = fallback

    @property
    def provider_name(self) -> str:
        """Return provider name for logging."""
        return "token"

    @property
    def challenge(self) -> str:
        """Scheme advertised in ``WWW-Authenticate``."""
        return "Bearer"

    def authenticate_token(self, token: str) -> AuthenticatedIdentity:
        """Resolve an access token to an identity.

        Raises:
            TokenInvalidError: If the token is malformed or forged.
            TokenExpiredError: If the token has expired.
            WrongTokenTypeError: If the token is not an access token.
            TokenRevokedError: If the token id has been revoked.
        """
        claims = self.token_service.validate(token)

        if claims.token_type != TokenType.ACCESS:
            logger.warning(
                "Rejected non-access token",
                client_id=claims.client_id,
                token_type=claims.token_type,
            )
            msg = f"Invalid token type: {claims.token_type}. Expected 'access'."
            raise WrongTokenTypeError(msg)

        if self.revocation_store.is_revoked(claims.token_id):
            logger.warning(
                "Rejected revoked token",
                client_id=claims.client_id,
                token_id=claims.token_id,
            )
            msg = "Token has been revoked"
            raise TokenRevokedError(msg)

        return AuthenticatedIdentity(
            client_id=claims.client_id,
            credential_type=CredentialType.ACCESS_TOKEN,
            scopes=claims.scopes,
            token_id=claims.token_id,
            expires_at=claims.expires_at,
        )

    async def authenticate(self, request: Request) -> AuthenticatedIdentity:
        """Authenticate by bearer token, or by API key when none is sent."""
        token = extract_bearer_token(request)
        if token is None:
            return await self.fallback.authenticate(request)
        return self.authenticate_token(token)
