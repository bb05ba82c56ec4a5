"""Token issuance, refresh, validation, and revocation schemas."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from zap_gateway.schemas.base import APIRequest, APIResponse


class TokenRequest(APIRequest):
    """Exchange a pre-shared secret for a token pair.

    The secret may also be sent in the API key header instead of the body.
    """

    shared_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sharedSecret", "shared_secret", "apiKey", "api_key"),
        description="Pre-shared client secret",
    )
    client_id: str | None = Field(
        default=None,
        description="Expected client id; must match the secret's owner",
    )


class RefreshTokenRequest(APIRequest):
    """Request a new access token with a refresh token."""

    refresh_token: str | None = Field(default=None, description="Refresh token")


class RevokeRequest(APIRequest):
    """Optional refresh token to revoke alongside the presented access token."""

    refresh_token: str | None = Field(default=None, description="Refresh token")


class TokenResponse(APIResponse):
    """Issued or refreshed token pair."""

    access_token: str = Field(..., description="Signed access token")
    refresh_token: str = Field(..., description="Signed refresh token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    client_id: str = Field(..., description="Client the tokens were issued to")
    scopes: list[str] = Field(default_factory=list, description="Granted scopes")


class TokenValidationResponse(APIResponse):
    """Result of validating the presented access token."""

    valid: bool
    client_id: str | None = None
    scopes: list[str] | None = None
    expires_in: int | None = None
    error: str | None = None
