"""Authentication provider models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class CredentialType(StrEnum):
    """How the caller proved its identity."""

    NONE = "none"
    SHARED_SECRET = "shared_secret"  # noqa: S105 - not a password
    ACCESS_TOKEN = "access_token"  # noqa: S105 - not a password


class AuthenticatedIdentity(BaseModel):
    """Result of a successful authentication.

    Request-scoped: the gateway attaches it to ``request.state.identity``
    and it is discarded with the request.

    Attributes:
        client_id: Registered client id, or ``anonymous`` in open mode.
        credential_type: Which credential was accepted.
        scopes: Capabilities granted for this request.
        token_id: ``jti`` of the access token, when one was used.
        expires_at: ``exp`` of the access token, when one was used.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., description="Authenticated client id")
    credential_type: CredentialType = Field(..., description="Accepted credential")
    scopes: tuple[str, ...] = Field(default=(), description="Granted scopes")
    token_id: str | None = Field(default=None, description="Access token id")
    expires_at: int | None = Field(default=None, description="Access token expiry")
