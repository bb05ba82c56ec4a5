"""FastAPI security dependencies.

This module provides reusable dependencies for authentication and
authorization in route handlers. Authentication itself happens in the
AuthenticationGateway middleware; these dependencies read its result and
hand out the auth components stored on ``app.state``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request

from zap_gateway.auth.exceptions import AuthFailureReason
from zap_gateway.auth.permissions import Scope, has_all_scopes, has_any_scope
from zap_gateway.auth.providers.models import AuthenticatedIdentity
from zap_gateway.core.exceptions import (
    ForbiddenError,
    ServiceUnavailableError,
    UnauthorizedError,
)


if TYPE_CHECKING:
    from zap_gateway.auth.credentials import CredentialStore
    from zap_gateway.auth.jwt import TokenService
    from zap_gateway.auth.revocation import RevocationStore


async def get_identity(request: Request) -> AuthenticatedIdentity:
    """Get the identity established by the authentication gateway.

    Raises:
        UnauthorizedError: If the route was reached without authentication,
            which only happens for a route mounted under a public path.
    """
    identity: AuthenticatedIdentity | None = getattr(
        request.state, "identity", None
    )
    if identity is None:
        msg = "Authentication required"
        raise UnauthorizedError(
            msg,
            reason=AuthFailureReason.MISSING_CREDENTIALS.value,
        )
    return identity


async def get_token_service(request: Request) -> TokenService:
    """Get the token service from app state.

    Raises:
        ServiceUnavailableError: If no signing key is configured.
    """
    service: TokenService | None = getattr(request.app.state, "token_service", None)
    if service is None:
        msg = "Token issuance is not configured on this server"
        raise ServiceUnavailableError(msg)
    return service


async def get_credential_store(request: Request) -> CredentialStore:
    """Get the credential store from app state."""
    store: CredentialStore = request.app.state.credential_store
    return store


async def get_revocation_store(request: Request) -> RevocationStore:
    """Get the revocation store from app state."""
    store: RevocationStore = request.app.state.revocation_store
    return store


class RequireScopes:
    """Dependency class for requiring specific scopes.

    Usage:
        @router.post("/scans/spider")
        async def start_spider(
            identity: Annotated[
                AuthenticatedIdentity, Depends(RequireScopes(Scope.SCAN_SPIDER))
            ],
        ):
            ...
    """

    def __init__(self, *scopes: Scope | str, require_all: bool = True) -> None:
        """Initialize scope requirement.

        Args:
            scopes: Required scopes.
            require_all: If True, the client must hold ALL scopes.
                        If False, it needs at least one.
        """
        self.scopes = list(scopes)
        self.require_all = require_all

    async def __call__(
        self,
        identity: Annotated[AuthenticatedIdentity, Depends(get_identity)],
    ) -> AuthenticatedIdentity:
        """Check the identity's scopes.

        Raises:
            ForbiddenError: 403 if the client lacks the required scopes.
        """
        check = has_all_scopes if self.require_all else has_any_scope
        if not check(identity.scopes, self.scopes):
            msg = f"Missing required scope: {', '.join(str(s) for s in self.scopes)}"
            raise ForbiddenError(msg)
        return identity
