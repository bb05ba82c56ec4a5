"""Authentication exceptions.

This module defines exceptions raised by the token service, the credential
checks, and the authentication providers. The gateway converts every
``AuthenticationError`` into a 401 response that carries the exception's
``reason``.
"""

from __future__ import annotations

from enum import StrEnum


class AuthFailureReason(StrEnum):
    """Machine-readable reason attached to every 401 response."""

    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_API_KEY = "invalid_api_key"
    INVALID_TOKEN = "invalid_token"  # noqa: S105 - not a password
    TOKEN_EXPIRED = "token_expired"  # noqa: S105 - not a password
    WRONG_TOKEN_TYPE = "wrong_token_type"  # noqa: S105 - not a password
    TOKEN_REVOKED = "token_revoked"  # noqa: S105 - not a password
    UNKNOWN_CLIENT = "unknown_client"


class AuthProviderError(Exception):
    """Base exception for auth errors."""


class AuthenticationError(AuthProviderError):
    """Raised when authentication fails for any reason."""

    reason: AuthFailureReason = AuthFailureReason.MISSING_CREDENTIALS

    def __init__(
        self,
        message: str,
        reason: AuthFailureReason | None = None,
    ) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(message)


class MissingCredentialsError(AuthenticationError):
    """Raised when a request carries no credential at all."""

    reason = AuthFailureReason.MISSING_CREDENTIALS


class InvalidApiKeyError(AuthenticationError):
    """Raised when a shared secret matches no registered client."""

    reason = AuthFailureReason.INVALID_API_KEY


class TokenInvalidError(AuthenticationError):
    """Raised when a token is malformed or signature verification fails."""

    reason = AuthFailureReason.INVALID_TOKEN


class TokenExpiredError(AuthenticationError):
    """Raised when a token has expired."""

    reason = AuthFailureReason.TOKEN_EXPIRED


class WrongTokenTypeError(AuthenticationError):
    """Raised when a refresh token is used as an access token or vice versa."""

    reason = AuthFailureReason.WRONG_TOKEN_TYPE


class TokenRevokedError(AuthenticationError):
    """Raised when a token's id is in the revocation store."""

    reason = AuthFailureReason.TOKEN_REVOKED


class UnknownClientError(AuthenticationError):
    """Raised when a token's subject is no longer a registered client."""

    reason = AuthFailureReason.UNKNOWN_CLIENT


class ConfigurationError(AuthProviderError):
    """Raised when the gateway is misconfigured.

    Raised during application construction so the process refuses to
    serve rather than run insecurely.
    """
