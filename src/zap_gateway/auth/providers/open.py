"""Open-mode provider: every request is accepted without credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from zap_gateway.auth.credentials import WILDCARD_SCOPE
from zap_gateway.auth.providers.models import AuthenticatedIdentity, CredentialType
from zap_gateway.observability.logging import get_logger


if TYPE_CHECKING:
    from starlette.requests import Request

logger = get_logger(__name__)

ANONYMOUS_CLIENT_ID: Final[str] = "anonymous"

_ANONYMOUS = AuthenticatedIdentity(
    client_id=ANONYMOUS_CLIENT_ID,
    credential_type=CredentialType.NONE,
    scopes=(WILDCARD_SCOPE,),
)


class OpenAuthProvider:
    """Accepts every request as the unrestricted ``anonymous`` client.

    WARNING: Only for fully trusted or offline deployments.
    """

    def __init__(self) -> None:
        logger.warning(
            "Security mode is OPEN - authentication is disabled! "
            "Ensure this is intentional and not an exposed deployment."
        )

    @property
    def provider_name(self) -> str:
        """Return provider name for logging."""
        return "open"

    @property
    def challenge(self) -> str:
        """Never used; open mode does not reject."""
        return "API-Key"

    async def authenticate(self, _request: Request) -> AuthenticatedIdentity:
        """Return the anonymous identity."""
        return _ANONYMOUS
