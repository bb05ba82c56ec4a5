"""Unit tests for the token service."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from jose import jwt

from tests.factories.settings import TEST_SECRET_KEY, SettingsFactory
from zap_gateway.auth.exceptions import (
    ConfigurationError,
    TokenExpiredError,
    TokenInvalidError,
)
from zap_gateway.auth.jwt import TokenService, TokenType


if TYPE_CHECKING:
    from tests.unit.fakes import FakeClock


pytestmark = pytest.mark.unit


@pytest.fixture
def token_service(clock: FakeClock) -> TokenService:
    """Token service with short lifetimes and a fake clock."""
    return TokenService(
        TEST_SECRET_KEY,
        access_token_ttl=300,
        refresh_token_ttl=3600,
        clock=clock,
    )


def _flip_signature_char(token: str) -> str:
    header, payload, signature = token.split(".")
    middle = len(signature) // 2
    replacement = "A" if signature[middle] != "A" else "B"
    signature = signature[:middle] + replacement + signature[middle + 1 :]
    return f"{header}.{payload}.{signature}"


class TestConstruction:
    """Tests for signing key checks."""

    def test_rejects_missing_key(self) -> None:
        """Should refuse to start without a key."""
        with pytest.raises(ConfigurationError, match="not configured"):
            TokenService("")

    def test_rejects_short_key(self) -> None:
        """Should refuse keys shorter than 256 bits."""
        with pytest.raises(ConfigurationError, match="at least 32 bytes"):
            TokenService("x" * 31)

    def test_accepts_32_byte_key(self) -> None:
        """Should accept a key of exactly 32 bytes."""
        assert TokenService("x" * 32).issuer == "mcp-zap-server"

    def test_from_settings(self) -> None:
        """Should take lifetimes and issuer from configuration."""
        service = TokenService.from_settings(SettingsFactory.build())

        assert service.access_token_ttl == 300
        assert service.refresh_token_ttl == 3600
        assert service.issuer == "mcp-zap-server"


class TestIssuance:
    """Tests for access and refresh token issuance."""

    def test_access_token_claims(
        self, token_service: TokenService, clock: FakeClock
    ) -> None:
        """Should carry subject, scopes, type, and expiry."""
        token = token_service.issue_access_token("ci-runner", ["scan:read", "scan:stop"])

        claims = token_service.validate(token)

        assert claims.client_id == "ci-runner"
        assert claims.token_type == TokenType.ACCESS
        assert claims.scopes == ("scan:read", "scan:stop")
        assert claims.issuer == "mcp-zap-server"
        assert claims.issued_at == int(clock.now)
        assert claims.expires_at == int(clock.now) + 300

    def test_refresh_token_claims(
        self, token_service: TokenService, clock: FakeClock
    ) -> None:
        """Should issue a longer-lived refresh token without scopes."""
        token = token_service.issue_refresh_token("ci-runner")

        claims = token_service.validate(token)

        assert claims.token_type == TokenType.REFRESH
        assert claims.scopes == ()
        assert claims.expires_at == int(clock.now) + 3600

    def test_token_ids_are_unique(self, token_service: TokenService) -> None:
        """Should give every token its own id."""
        ids = {
            token_service.get_token_id(token_service.issue_access_token("a", []))
            for _ in range(20)
        }

        assert len(ids) == 20

    def test_token_uses_hs256(self, token_service: TokenService) -> None:
        """Should sign with HS256."""
        token = token_service.issue_access_token("a", [])

        assert jwt.get_unverified_header(token)["alg"] == "HS256"


class TestValidation:
    """Tests for signature, issuer, and expiry checks."""

    def test_flipped_signature_is_invalid(self, token_service: TokenService) -> None:
        """Should reject a token whose signature was altered."""
        token = token_service.issue_access_token("ci-runner", ["*"])

        with pytest.raises(TokenInvalidError):
            token_service.validate(_flip_signature_char(token))

    def test_tampered_payload_is_invalid(self, token_service: TokenService) -> None:
        """Should reject a token re-signed with another key."""
        claims = jwt.get_unverified_claims(token_service.issue_access_token("a", []))
        forged = jwt.encode(
            {**claims, "scopes": ["*"]}, "another-key-that-is-long-enough-1234"
        )

        with pytest.raises(TokenInvalidError):
            token_service.validate(forged)

    def test_wrong_issuer_is_invalid(
        self, token_service: TokenService, clock: FakeClock
    ) -> None:
        """Should reject a token issued by someone else."""
        other = TokenService(TEST_SECRET_KEY, issuer="other-issuer", clock=clock)

        with pytest.raises(TokenInvalidError):
            token_service.validate(other.issue_access_token("a", []))

    def test_missing_claims_are_invalid(self, token_service: TokenService) -> None:
        """Should reject a correctly signed token without a token id."""
        token = jwt.encode(
            {"sub": "a", "iss": "mcp-zap-server", "iat": 1, "exp": 2**40},
            TEST_SECRET_KEY,
        )

        with pytest.raises(TokenInvalidError):
            token_service.validate(token)

    @pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
    def test_garbage_is_invalid(self, token_service: TokenService, token: str) -> None:
        """Should reject malformed input."""
        with pytest.raises(TokenInvalidError):
            token_service.validate(token)

    def test_expired_token(self, token_service: TokenService, clock: FakeClock) -> None:
        """Should reject a token once the clock passes its expiry."""
        token = token_service.issue_access_token("ci-runner", ["*"])

        clock.advance(301)

        with pytest.raises(TokenExpiredError):
            token_service.validate(token)

    def test_valid_until_expiry(
        self, token_service: TokenService, clock: FakeClock
    ) -> None:
        """Should accept a token at exactly its expiry second."""
        token = token_service.issue_access_token("ci-runner", ["*"])

        clock.advance(300)

        assert token_service.validate(token).client_id == "ci-runner"


class TestInspection:
    """Tests for claim projections and expiry helpers."""

    def test_projections(self, token_service: TokenService) -> None:
        """Should expose individual claims of a valid token."""
        token = token_service.issue_access_token("ci-runner", ["scan:read"])

        assert token_service.get_client_id(token) == "ci-runner"
        assert token_service.get_token_type(token) == "access"
        assert token_service.get_scopes(token) == ["scan:read"]
        assert token_service.get_claim(token, "iss") == "mcp-zap-server"
        assert token_service.get_claim(token, "missing") is None

    def test_is_expired(self, token_service: TokenService, clock: FakeClock) -> None:
        """Should report expiry without raising for expired tokens."""
        token = token_service.issue_access_token("a", [])

        assert token_service.is_expired(token) is False
        clock.advance(301)
        assert token_service.is_expired(token) is True

    def test_is_expired_raises_for_forged_token(
        self, token_service: TokenService
    ) -> None:
        """Should not treat a forged token as merely expired."""
        token = token_service.issue_access_token("a", [])

        with pytest.raises(TokenInvalidError):
            token_service.is_expired(_flip_signature_char(token))

    def test_seconds_until_expiry(
        self, token_service: TokenService, clock: FakeClock
    ) -> None:
        """Should count down and never go negative."""
        token = token_service.issue_access_token("a", [])

        assert token_service.seconds_until_expiry(token) == 300
        clock.advance(100)
        assert token_service.seconds_until_expiry(token) == 200
        clock.advance(1000)
        assert token_service.seconds_until_expiry(token) == 0
