"""Unit tests for logging middleware.

Tests cover:
- Request/response logging
- Excluded paths
- Client IP extraction
- Client id reporting
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from zap_gateway.core.middleware.logging import LoggingMiddleware


pytestmark = pytest.mark.unit


def make_request(
    path: str = "/scans/spider",
    headers: dict[str, str] | None = None,
    client_host: str | None = "203.0.113.7",
    identity: object | None = None,
) -> MagicMock:
    """Build a request double for the middleware."""
    request = MagicMock()
    request.url.path = path
    request.method = "POST"
    request.headers = headers or {}
    request.client = SimpleNamespace(host=client_host) if client_host else None
    request.state = SimpleNamespace()
    if identity is not None:
        request.state.identity = identity
    return request


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware."""

    def test_init_defaults(self) -> None:
        """Should exclude the probes by default."""
        middleware = LoggingMiddleware(MagicMock())

        assert middleware.exclude_paths == {"/health", "/ready", "/favicon.ico"}

    def test_init_custom_values(self) -> None:
        """Should accept custom excluded paths."""
        middleware = LoggingMiddleware(MagicMock(), exclude_paths={"/custom"})

        assert middleware.exclude_paths == {"/custom"}

    async def test_skips_excluded_paths(self) -> None:
        """Should skip logging for excluded paths."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request(path="/health")
        call_next = AsyncMock(return_value=MagicMock())

        with (
            patch("zap_gateway.core.middleware.logging.bind_context") as mock_bind,
            patch("zap_gateway.core.middleware.logging.logger") as mock_logger,
        ):
            await middleware.dispatch(request, call_next)

        mock_bind.assert_not_called()
        mock_logger.info.assert_not_called()
        call_next.assert_called_once_with(request)

    async def test_logs_start_and_completion(self) -> None:
        """Should log the request and its outcome."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request()
        response = MagicMock(status_code=202)
        call_next = AsyncMock(return_value=response)

        with (
            patch("zap_gateway.core.middleware.logging.bind_context") as mock_bind,
            patch("zap_gateway.core.middleware.logging.logger") as mock_logger,
        ):
            result = await middleware.dispatch(request, call_next)

        assert result is response
        mock_bind.assert_called_once_with(
            method="POST", path="/scans/spider", client_ip="203.0.113.7"
        )
        assert mock_logger.info.call_count == 2
        completed = mock_logger.info.call_args
        assert completed.args == ("Request completed",)
        assert completed.kwargs["status_code"] == 202
        assert completed.kwargs["duration_ms"] >= 0
        assert completed.kwargs["client_id"] is None

    async def test_reports_authenticated_client(self) -> None:
        """Should include the client id set by the gateway."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request(identity=SimpleNamespace(client_id="ci-runner"))
        call_next = AsyncMock(return_value=MagicMock(status_code=200))

        with (
            patch("zap_gateway.core.middleware.logging.bind_context"),
            patch("zap_gateway.core.middleware.logging.logger") as mock_logger,
        ):
            await middleware.dispatch(request, call_next)

        assert mock_logger.info.call_args.kwargs["client_id"] == "ci-runner"


class TestGetClientIP:
    """Tests for _get_client_ip method."""

    @pytest.mark.parametrize(
        ("headers", "client_host", "expected"),
        [
            ({"x-forwarded-for": "198.51.100.1, 10.0.0.1"}, "10.0.0.2", "198.51.100.1"),
            ({"x-real-ip": "198.51.100.2"}, "10.0.0.2", "198.51.100.2"),
            (
                {"x-forwarded-for": " 198.51.100.1 ", "x-real-ip": "198.51.100.2"},
                "10.0.0.2",
                "198.51.100.1",
            ),
            ({}, "10.0.0.2", "10.0.0.2"),
            ({}, None, "unknown"),
        ],
    )
    def test_client_ip(
        self, headers: dict[str, str], client_host: str | None, expected: str
    ) -> None:
        """Should prefer proxy headers, then the socket peer."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request(headers=headers, client_host=client_host)

        assert middleware._get_client_ip(request) == expected
