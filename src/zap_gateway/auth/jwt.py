"""Signed, stateless access and refresh tokens.

Tokens are HS256 JWTs signed with one shared key that is loaded at startup.
No server-side session table exists: validity comes only from the
signature, the clock, and (in the gateway) the revocation store.
"""

from __future__ import annotations

import secrets
import time
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from zap_gateway.auth.exceptions import (
    ConfigurationError,
    TokenExpiredError,
    TokenInvalidError,
)
from zap_gateway.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from zap_gateway.core.config import Settings


logger = get_logger(__name__)

# HS256 needs at least 256 bits of key material
MIN_SECRET_KEY_BYTES: Final[int] = 32
TOKEN_ID_BYTES: Final[int] = 16

_REQUIRED_CLAIMS = {
    "require_exp": True,
    "require_iat": True,
    "require_sub": True,
    "require_jti": True,
}


class TokenType(StrEnum):
    """Value of the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenClaims(BaseModel):
    """Claims of a token that passed signature and expiry checks."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject: str = Field(..., alias="sub", min_length=1)
    issuer: str | None = Field(default=None, alias="iss")
    issued_at: int = Field(..., alias="iat")
    expires_at: int = Field(..., alias="exp")
    token_id: str = Field(..., alias="jti", min_length=1)
    token_type: str = Field(..., alias="type")
    scopes: tuple[str, ...] = ()

    @property
    def client_id(self) -> str:
        """The client the token was issued to."""
        return self.subject


class TokenService:
    """Issues, validates, and inspects access and refresh tokens.

    Args:
        secret_key: HMAC signing key, at least 32 bytes.
        issuer: Value of the ``iss`` claim; enforced on validation.
        access_token_ttl: Access token lifetime in seconds.
        refresh_token_ttl: Refresh token lifetime in seconds.
        algorithm: JWT signing algorithm.
        clock: Returns the current POSIX time. Injected by tests.

    Raises:
        ConfigurationError: If the signing key is missing or too short.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        issuer: str = "mcp-zap-server",
        access_token_ttl: int = 3600,
        refresh_token_ttl: int = 604800,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            msg = "JWT_SECRET_KEY is not configured"
            raise ConfigurationError(msg)
        if len(secret_key.encode("utf-8")) < MIN_SECRET_KEY_BYTES:
            msg = (
                f"JWT_SECRET_KEY must be at least {MIN_SECRET_KEY_BYTES} bytes "
                f"({MIN_SECRET_KEY_BYTES * 8} bits)"
            )
            raise ConfigurationError(msg)

        self._secret_key = secret_key
        self.issuer = issuer
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self.algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        """Build the service from ``auth.jwt`` and ``JWT_SECRET_KEY``."""
        jwt_settings = settings.auth.jwt
        return cls(
            settings.JWT_SECRET_KEY,
            issuer=jwt_settings.issuer,
            access_token_ttl=jwt_settings.access_token_ttl,
            refresh_token_ttl=jwt_settings.refresh_token_ttl,
            algorithm=jwt_settings.algorithm,
        )

    # -------------------------------------------------------------------------
    # Issuance
    # -------------------------------------------------------------------------

    def issue_access_token(self, client_id: str, scopes: Iterable[str]) -> str:
        """Create a signed access token for ``client_id``."""
        return self._issue(
            client_id,
            TokenType.ACCESS,
            self.access_token_ttl,
            scopes=list(scopes),
        )

    def issue_refresh_token(self, client_id: str) -> str:
        """Create a signed refresh token for ``client_id``.

        Refresh tokens carry no scopes; the current scopes are looked up
        again when the token is exchanged.
        """
        return self._issue(client_id, TokenType.REFRESH, self.refresh_token_ttl)

    def _issue(
        self,
        client_id: str,
        token_type: TokenType,
        ttl: int,
        *,
        scopes: list[str] | None = None,
    ) -> str:
        now = int(self._clock())
        payload: dict[str, Any] = {
            "sub": client_id,
            "iss": self.issuer,
            "iat": now,
            "exp": now + ttl,
            "jti": secrets.token_hex(TOKEN_ID_BYTES),
            "type": token_type.value,
        }
        if scopes is not None:
            payload["scopes"] = scopes

        logger.debug(
            "Issued token",
            client_id=client_id,
            token_type=token_type.value,
            token_id=payload["jti"],
        )
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _decode(self, token: str, *, verify_exp: bool = True) -> dict[str, Any]:
        if not token:
            msg = "Token is empty"
            raise TokenInvalidError(msg)

        # Expiry is checked below against the injected clock
        now = int(self._clock())
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={**_REQUIRED_CLAIMS, "verify_exp": False},
            )
        except JWTClaimsError as e:
            logger.warning("Token claims validation failed", error=str(e))
            msg = "Invalid token claims"
            raise TokenInvalidError(msg) from e
        except JWTError as e:
            logger.warning("Token validation failed", error=str(e))
            msg = "Invalid token"
            raise TokenInvalidError(msg) from e

        exp = payload.get("exp")
        if not isinstance(exp, int):
            msg = "Invalid token claims"
            raise TokenInvalidError(msg)
        if verify_exp and now > exp:
            logger.debug("Token expired", token_id=payload.get("jti"))
            msg = "Token has expired"
            raise TokenExpiredError(msg)
        return payload

    def validate(self, token: str) -> TokenClaims:
        """Verify signature, issuer, and expiry, and return the claims.

        Raises:
            TokenInvalidError: On a signature mismatch or malformed token.
            TokenExpiredError: When the current time is past ``exp``.
        """
        payload = self._decode(token)
        try:
            return TokenClaims.model_validate(payload)
        except ValidationError as e:
            msg = "Invalid token claims"
            raise TokenInvalidError(msg) from e

    def get_claim(self, token: str, name: str) -> Any:
        """Return one raw claim of a valid token, or None if it is absent."""
        return self._decode(token).get(name)

    def get_token_type(self, token: str) -> str:
        """Return the ``type`` claim of a valid token."""
        return self.validate(token).token_type

    def get_token_id(self, token: str) -> str:
        """Return the ``jti`` claim of a valid token."""
        return self.validate(token).token_id

    def get_client_id(self, token: str) -> str:
        """Return the subject of a valid token."""
        return self.validate(token).subject

    def get_scopes(self, token: str) -> list[str]:
        """Return the scopes of a valid token."""
        return list(self.validate(token).scopes)

    def is_expired(self, token: str) -> bool:
        """Return True if a correctly signed token is past its expiry.

        Raises:
            TokenInvalidError: If the token is not correctly signed.
        """
        try:
            self._decode(token)
        except TokenExpiredError:
            return True
        return False

    def seconds_until_expiry(self, token: str) -> int:
        """Seconds left before a correctly signed token expires, never negative."""
        exp: int = self._decode(token, verify_exp=False)["exp"]
        return max(0, exp - int(self._clock()))
