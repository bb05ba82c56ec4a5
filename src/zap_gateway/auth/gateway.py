"""Authentication gateway middleware.

Every request except those to public paths is authenticated here before it
reaches a route handler:
- Public paths (health, token issuance, token refresh) pass straight through
- Otherwise the configured provider authenticates the request
- On success the identity is stored on ``request.state.identity`` and the
  client id is bound to the logging context
- On failure a 401 is returned with a machine-readable reason and a
  ``WWW-Authenticate`` challenge; the route is never called
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status
from fastapi.responses import ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from zap_gateway.auth.exceptions import AuthenticationError
from zap_gateway.core.exceptions import ErrorResponse
from zap_gateway.observability.logging import bind_context, get_logger


if TYPE_CHECKING:
    from collections.abc import Iterable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

    from zap_gateway.auth.providers.protocol import AuthProvider

logger = get_logger(__name__)


class AuthenticationGateway(BaseHTTPMiddleware):
    """Middleware that authenticates every non-public request."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        provider: AuthProvider,
        public_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.provider = provider
        self.public_paths = frozenset(p.rstrip("/") or "/" for p in public_paths)

    def is_public(self, path: str) -> bool:
        """Return True if ``path`` bypasses authentication."""
        return (path.rstrip("/") or "/") in self.public_paths

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Authenticate the request or reject it with a 401."""
        if self.is_public(request.url.path):
            return await call_next(request)

        try:
            identity = await self.provider.authenticate(request)
        except AuthenticationError as e:
            logger.info(
                "Authentication rejected",
                provider=self.provider.provider_name,
                reason=e.reason.value,
            )
            return self._reject(request, e)

        request.state.identity = identity
        bind_context(client_id=identity.client_id)
        logger.debug(
            "Request authenticated",
            credential_type=identity.credential_type.value,
        )
        return await call_next(request)

    def _reject(self, request: Request, error: AuthenticationError) -> Response:
        return ORJSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=ErrorResponse(
                error="UNAUTHORIZED",
                message=str(error) or "Authentication failed",
                reason=error.reason.value,
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(exclude_none=True),
            headers={"WWW-Authenticate": self.provider.challenge},
        )
