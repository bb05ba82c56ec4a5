"""Token endpoints.

Exchange a pre-shared secret for a token pair, refresh an access token,
inspect the presented token, and revoke tokens before they expire.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Body, Depends, Request, Response, status
from pydantic import ValidationError

from zap_gateway.api.dependencies import get_app_settings
from zap_gateway.auth.credentials import CredentialStore  # noqa: TC001
from zap_gateway.auth.dependencies import (
    get_credential_store,
    get_identity,
    get_revocation_store,
    get_token_service,
)
from zap_gateway.auth.exceptions import (
    AuthenticationError,
    AuthFailureReason,
    TokenRevokedError,
    UnknownClientError,
    WrongTokenTypeError,
)
from zap_gateway.auth.jwt import TokenService, TokenType
from zap_gateway.auth.providers.models import AuthenticatedIdentity, CredentialType
from zap_gateway.auth.providers.token import extract_bearer_token
from zap_gateway.auth.revocation import RevocationStore  # noqa: TC001
from zap_gateway.core.config import Settings  # noqa: TC001
from zap_gateway.core.exceptions import BadRequestError, UnauthorizedError
from zap_gateway.observability.logging import get_logger
from zap_gateway.schemas.auth import (
    RefreshTokenRequest,
    RevokeRequest,
    TokenRequest,
    TokenResponse,
    TokenValidationResponse,
)


if TYPE_CHECKING:
    from zap_gateway.auth.credentials import ClientIdentity
    from zap_gateway.auth.jwt import TokenClaims


logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

BEARER_CHALLENGE = "Bearer"


def _token_response(
    token_service: TokenService,
    client: ClientIdentity,
    access_token: str,
    refresh_token: str,
) -> TokenResponse:
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type=BEARER_CHALLENGE,
        expires_in=token_service.seconds_until_expiry(access_token),
        client_id=client.client_id,
        scopes=list(client.scopes),
    )


@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Issue tokens",
    description="Exchange a pre-shared secret for an access and refresh token.",
)
async def issue_token(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    body: Annotated[TokenRequest | None, Body()] = None,
) -> TokenResponse:
    """Issue a token pair for the client that owns the presented secret.

    The secret is read from the body first and the API key header second.
    """
    secret = body.shared_secret if body else None
    if not secret:
        secret = request.headers.get(settings.security.api_key_header)
    if not secret or not secret.strip():
        logger.warning("Token request missing shared secret")
        msg = "A shared secret is required"
        raise BadRequestError(msg, reason=AuthFailureReason.MISSING_CREDENTIALS.value)

    client = credential_store.find_by_key(secret.strip())
    if client is None or (body and body.client_id and body.client_id != client.client_id):
        logger.warning("Invalid shared secret presented for token issuance")
        msg = "Invalid shared secret"
        raise UnauthorizedError(
            msg,
            reason=AuthFailureReason.INVALID_API_KEY.value,
            challenge=BEARER_CHALLENGE,
        )

    access_token = token_service.issue_access_token(client.client_id, client.scopes)
    refresh_token = token_service.issue_refresh_token(client.client_id)
    logger.info("Issued tokens", client_id=client.client_id)

    return _token_response(token_service, client, access_token, refresh_token)


def _check_refresh_token(
    token: str,
    token_service: TokenService,
    revocation_store: RevocationStore,
) -> TokenClaims:
    """Validate a refresh token.

    Raises:
        AuthenticationError: If the token is invalid, expired, revoked, or
            not a refresh token.
    """
    claims = token_service.validate(token)

    if claims.token_type != TokenType.REFRESH:
        logger.warning(
            "Invalid token type for refresh",
            client_id=claims.client_id,
            token_type=claims.token_type,
        )
        msg = f"Invalid token type: {claims.token_type}. Expected 'refresh'."
        raise WrongTokenTypeError(msg)

    if revocation_store.is_revoked(claims.token_id):
        msg = "Token has been revoked"
        raise TokenRevokedError(msg)

    return claims


async def _read_refresh_request(request: Request) -> RefreshTokenRequest:
    """Parse the body by hand so a malformed one is a 400, not a 422."""
    raw = await request.body()
    try:
        body = RefreshTokenRequest.model_validate_json(raw) if raw.strip() else None
    except ValidationError:
        body = None

    if body is None or not body.refresh_token:
        logger.warning("Refresh request missing or malformed token")
        msg = "A refresh token is required"
        raise BadRequestError(msg, reason=AuthFailureReason.MISSING_CREDENTIALS.value)
    return body


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    description="Get a new access token using a valid refresh token.",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": RefreshTokenRequest.model_json_schema(by_alias=True)
                }
            },
        }
    },
)
async def refresh_token(
    request: Request,
    token_service: Annotated[TokenService, Depends(get_token_service)],
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    revocation_store: Annotated[RevocationStore, Depends(get_revocation_store)],
) -> TokenResponse:
    """Mint a new access token; the refresh token itself is echoed back.

    Scopes are looked up again so a client's current grant always applies.
    """
    body = await _read_refresh_request(request)
    token = body.refresh_token or ""

    try:
        claims = _check_refresh_token(token, token_service, revocation_store)
        client = credential_store.find_by_id(claims.client_id)
        if client is None:
            logger.warning("Client not found for refresh token", client_id=claims.client_id)
            msg = "Unknown client"
            raise UnknownClientError(msg)
    except AuthenticationError as e:
        raise UnauthorizedError(str(e), reason=e.reason.value) from e

    access_token = token_service.issue_access_token(client.client_id, client.scopes)
    logger.info("Refreshed access token", client_id=client.client_id)

    return _token_response(token_service, client, access_token, token)


@router.get(
    "/validate",
    response_model=TokenValidationResponse,
    response_model_exclude_none=True,
    summary="Validate token",
    description="Report whether the presented bearer token is valid.",
)
async def validate_token(
    request: Request,
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> TokenValidationResponse:
    """Inspect the bearer token sent with this request."""
    token = extract_bearer_token(request)
    if token is None:
        return TokenValidationResponse(
            valid=False,
            error="Missing or invalid Authorization header",
        )

    try:
        claims = token_service.validate(token)
    except AuthenticationError as e:
        return TokenValidationResponse(valid=False, error=str(e))

    return TokenValidationResponse(
        valid=True,
        client_id=claims.client_id,
        scopes=list(claims.scopes),
        expires_in=token_service.seconds_until_expiry(token),
    )


@router.post(
    "/revoke",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke tokens",
    description="Revoke the presented access token and, optionally, a refresh token.",
)
async def revoke_token(
    identity: Annotated[AuthenticatedIdentity, Depends(get_identity)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    revocation_store: Annotated[RevocationStore, Depends(get_revocation_store)],
    body: Annotated[RevokeRequest | None, Body()] = None,
) -> Response:
    """Revoke tokens until their natural expiry."""
    if (
        identity.credential_type != CredentialType.ACCESS_TOKEN
        or identity.token_id is None
        or identity.expires_at is None
    ):
        msg = "Revocation requires a bearer access token"
        raise BadRequestError(msg, reason=AuthFailureReason.MISSING_CREDENTIALS.value)

    refresh_claims = None
    if body and body.refresh_token:
        try:
            refresh_claims = _check_refresh_token(
                body.refresh_token, token_service, revocation_store
            )
        except AuthenticationError as e:
            raise UnauthorizedError(str(e), reason=e.reason.value) from e
        if refresh_claims.client_id != identity.client_id:
            msg = "Refresh token belongs to another client"
            raise UnauthorizedError(msg, reason=AuthFailureReason.INVALID_TOKEN.value)

    revocation_store.revoke(identity.token_id, identity.expires_at)
    if refresh_claims is not None:
        revocation_store.revoke(refresh_claims.token_id, refresh_claims.expires_at)

    logger.info(
        "Tokens revoked",
        client_id=identity.client_id,
        refresh_revoked=refresh_claims is not None,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
