"""Authentication provider protocol definition.

This module defines the AuthProvider protocol that every security mode
implements. Using a Protocol enables static type checking while keeping
each mode in its own small class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from starlette.requests import Request

    from zap_gateway.auth.providers.models import AuthenticatedIdentity


@runtime_checkable
class AuthProvider(Protocol):
    """Protocol for authentication providers.

    Example implementation:
        class MyAuthProvider:
            @property
            def provider_name(self) -> str:
                return "my_provider"

            @property
            def challenge(self) -> str:
                return "Bearer"

            async def authenticate(self, request: Request) -> AuthenticatedIdentity:
                ...
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name for logging."""
        ...

    @property
    def challenge(self) -> str:
        """Return the scheme advertised in ``WWW-Authenticate`` on failure."""
        ...

    async def authenticate(self, request: Request) -> AuthenticatedIdentity:
        """Authenticate a request from its headers.

        Args:
            request: The incoming request.

        Returns:
            The identity of the caller.

        Raises:
            AuthenticationError: If the request must be rejected. The
                exception's ``reason`` is returned to the caller.
        """
        ...
