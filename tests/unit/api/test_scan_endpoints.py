"""Unit tests for the scan endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.factories.settings import CI_CLIENT_KEY, READER_CLIENT_KEY
from tests.unit.fakes import FakeScanEngine, StaticResolver
from zap_gateway.clients.zap.exceptions import TargetUnreachableError, ZapUnavailableError
from zap_gateway.services.scanning.models import ScanKind, ScanOptions


pytestmark = pytest.mark.unit


CI_HEADERS = {"X-API-Key": CI_CLIENT_KEY}
READER_HEADERS = {"X-API-Key": READER_CLIENT_KEY}


class TestStartSpider:
    """Tests for POST /scans/spider."""

    async def test_accepted(self, client: AsyncClient, scan_engine: FakeScanEngine) -> None:
        """Should start a spider scan on the normalized URL."""
        response = await client.post(
            "/scans/spider",
            json={"targetUrl": "HTTPS://Example.com/shop", "maxDepth": 2},
            headers=CI_HEADERS,
        )

        assert response.status_code == 202
        assert response.json() == {
            "scanId": "1",
            "kind": "spider",
            "targetUrl": "https://example.com/shop",
        }
        assert scan_engine.started == [
            (ScanKind.SPIDER, "https://example.com/shop", ScanOptions(max_depth=2))
        ]

    @pytest.mark.parametrize(
        ("url", "error"),
        [
            ("http://localhost:8080", "FORBIDDEN_TARGET"),
            ("http://10.0.0.5", "FORBIDDEN_TARGET"),
            ("http://169.254.169.254/latest/meta-data", "FORBIDDEN_TARGET"),
            ("file:///etc/passwd", "INVALID_URL"),
            ("https://nowhere.invalid", "UNRESOLVABLE_HOST"),
        ],
    )
    async def test_rejected_targets(
        self,
        client: AsyncClient,
        scan_engine: FakeScanEngine,
        url: str,
        error: str,
    ) -> None:
        """Should answer 400 and never call the engine."""
        response = await client.post(
            "/scans/spider", json={"targetUrl": url}, headers=CI_HEADERS
        )

        assert response.status_code == 400
        assert response.json()["error"] == error
        assert scan_engine.started == []

    async def test_private_name_resolution(
        self,
        client: AsyncClient,
        scan_engine: FakeScanEngine,
        resolver: StaticResolver,
    ) -> None:
        """Should reject a name that resolves to a private address."""
        resolver.addresses["intranet.example.com"] = ["192.168.10.4"]

        response = await client.post(
            "/scans/spider",
            json={"targetUrl": "https://intranet.example.com"},
            headers=CI_HEADERS,
        )

        assert response.status_code == 400
        assert scan_engine.started == []

    async def test_missing_target(self, client: AsyncClient) -> None:
        """Should answer 422 for a body without a target."""
        response = await client.post("/scans/spider", json={}, headers=CI_HEADERS)

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_negative_depth(self, client: AsyncClient) -> None:
        """Should reject a negative depth."""
        response = await client.post(
            "/scans/spider",
            json={"targetUrl": "https://example.com", "maxDepth": -1},
            headers=CI_HEADERS,
        )

        assert response.status_code == 422

    async def test_insufficient_scope(
        self, client: AsyncClient, scan_engine: FakeScanEngine
    ) -> None:
        """Should answer 403 for a read-only client."""
        response = await client.post(
            "/scans/spider",
            json={"targetUrl": "https://example.com"},
            headers=READER_HEADERS,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"
        assert scan_engine.started == []

    async def test_unauthenticated(self, client: AsyncClient) -> None:
        """Should answer 401 without credentials."""
        response = await client.post(
            "/scans/spider", json={"targetUrl": "https://example.com"}
        )

        assert response.status_code == 401


class TestStartActive:
    """Tests for POST /scans/active."""

    async def test_accepted(self, client: AsyncClient, scan_engine: FakeScanEngine) -> None:
        """Should pass recurse and policy to the engine."""
        response = await client.post(
            "/scans/active",
            json={"targetUrl": "https://example.com", "recurse": False, "policy": "Light"},
            headers=CI_HEADERS,
        )

        assert response.status_code == 202
        assert response.json()["kind"] == "active"
        kind, _, options = scan_engine.started[0]
        assert kind is ScanKind.ACTIVE
        assert options == ScanOptions(recurse=False, policy="Light")

    async def test_limit_reached(
        self, client: AsyncClient, scan_engine: FakeScanEngine
    ) -> None:
        """Should answer 429 at the concurrent scan cap."""
        scan_engine.running[ScanKind.ACTIVE] = 3

        response = await client.post(
            "/scans/active",
            json={"targetUrl": "https://example.com"},
            headers=CI_HEADERS,
        )

        assert response.status_code == 429
        assert response.json()["error"] == "SCAN_LIMIT_EXCEEDED"
        assert scan_engine.started == []

    @pytest.mark.parametrize(
        "error",
        [
            ZapUnavailableError("connect to zap.internal:8090 refused"),
            TargetUnreachableError("zap.internal:8090 said 403"),
        ],
    )
    async def test_upstream_failure_is_hidden(
        self,
        client: AsyncClient,
        scan_engine: FakeScanEngine,
        error: Exception,
    ) -> None:
        """Should answer 503 without leaking upstream details."""
        scan_engine.error = error

        response = await client.post(
            "/scans/active",
            json={"targetUrl": "https://example.com"},
            headers=CI_HEADERS,
        )

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "UPSTREAM_ERROR"
        assert "zap.internal" not in response.text
        assert body["request_id"] == response.headers["X-Request-ID"]


class TestScanControl:
    """Tests for progress and stop endpoints."""

    async def test_progress(self, client: AsyncClient, scan_engine: FakeScanEngine) -> None:
        """Should report progress to a read-only client."""
        scan_engine.progress["4"] = 65

        response = await client.get("/scans/active/4", headers=READER_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"scanId": "4", "kind": "active", "progress": 65}

    async def test_unknown_kind(self, client: AsyncClient) -> None:
        """Should reject an unknown scan kind."""
        response = await client.get("/scans/passive/4", headers=CI_HEADERS)

        assert response.status_code == 422

    async def test_stop(self, client: AsyncClient, scan_engine: FakeScanEngine) -> None:
        """Should stop one scan."""
        response = await client.delete("/scans/spider/2", headers=CI_HEADERS)

        assert response.status_code == 204
        assert scan_engine.stopped == [(ScanKind.SPIDER, "2")]

    async def test_stop_requires_scope(
        self, client: AsyncClient, scan_engine: FakeScanEngine
    ) -> None:
        """Should refuse to stop scans for a read-only client."""
        response = await client.delete("/scans/spider/2", headers=READER_HEADERS)

        assert response.status_code == 403
        assert scan_engine.stopped == []

    async def test_stop_all(self, client: AsyncClient, scan_engine: FakeScanEngine) -> None:
        """Should stop every active scan."""
        response = await client.post("/scans/active/stop-all", headers=CI_HEADERS)

        assert response.status_code == 204
        assert scan_engine.stopped_all == [ScanKind.ACTIVE]
