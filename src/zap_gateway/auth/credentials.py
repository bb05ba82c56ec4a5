"""Registry of known API clients and their pre-shared keys.

The store is built once from configuration and never mutated afterwards,
so lookups need no locking. Keys are compared in constant time.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from zap_gateway.auth.exceptions import ConfigurationError
from zap_gateway.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Iterable

    from zap_gateway.core.config import Settings


logger = get_logger(__name__)

LEGACY_CLIENT_ID: Final[str] = "legacy-client"
WILDCARD_SCOPE: Final[str] = "*"


class ClientIdentity(BaseModel):
    """A registered client.

    Attributes:
        client_id: Unique client identifier, used as the token subject.
        shared_secret: Pre-shared key, never rendered in reprs or logs.
        scopes: Capabilities granted to the client. ``"*"`` grants all.
        name: Optional human-readable label.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    shared_secret: SecretStr
    scopes: tuple[str, ...] = (WILDCARD_SCOPE,)
    name: str | None = None


class CredentialStore:
    """Read-only lookup of clients by key or by id.

    Example:
        store = CredentialStore([ClientIdentity(client_id="ci", ...)])
        identity = store.find_by_key(request.headers["X-API-Key"])
    """

    def __init__(self, clients: Iterable[ClientIdentity] = ()) -> None:
        self._clients: tuple[ClientIdentity, ...] = tuple(clients)

        seen: set[str] = set()
        for client in self._clients:
            if client.client_id in seen:
                msg = f"Duplicate client id in configuration: {client.client_id}"
                raise ConfigurationError(msg)
            seen.add(client.client_id)

    @classmethod
    def from_settings(cls, settings: Settings) -> CredentialStore:
        """Build the store from ``auth.clients`` plus the optional legacy key."""
        clients = [
            ClientIdentity(
                client_id=entry.client_id,
                shared_secret=SecretStr(entry.key),
                scopes=tuple(entry.scopes),
                name=entry.name,
            )
            for entry in settings.auth.clients
            if entry.key
        ]
        if settings.LEGACY_API_KEY:
            clients.append(
                ClientIdentity(
                    client_id=LEGACY_CLIENT_ID,
                    shared_secret=SecretStr(settings.LEGACY_API_KEY),
                    scopes=(WILDCARD_SCOPE,),
                    name="Legacy API key",
                )
            )
        store = cls(clients)
        logger.info("Credential store loaded", clients=len(store))
        return store

    def __len__(self) -> int:
        return len(self._clients)

    def find_by_key(self, secret: str | None) -> ClientIdentity | None:
        """Return the client owning ``secret``, or None.

        Every entry is compared, so the time taken does not depend on
        which entry matched.
        """
        if not secret:
            return None

        candidate = secret.encode("utf-8")
        match: ClientIdentity | None = None
        for client in self._clients:
            expected = client.shared_secret.get_secret_value().encode("utf-8")
            if expected and hmac.compare_digest(candidate, expected) and match is None:
                match = client
        return match

    def find_by_id(self, client_id: str | None) -> ClientIdentity | None:
        """Return the client registered as ``client_id``, or None."""
        if not client_id:
            return None
        return next((c for c in self._clients if c.client_id == client_id), None)
