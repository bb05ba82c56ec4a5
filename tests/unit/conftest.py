"""Unit test configuration.

Unit tests should be fast and isolated - no external dependencies. ZAP is
replaced by an in-memory scan engine and DNS by a static resolver.
"""

from __future__ import annotations

import os


# Select config/environments/test before any settings are loaded
os.environ["APP_ENV"] = "test"

from collections.abc import AsyncIterator  # noqa: E402
from typing import TYPE_CHECKING  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from tests.factories.settings import SettingsFactory  # noqa: E402
from tests.unit.fakes import FakeClock, FakeScanEngine, StaticResolver  # noqa: E402
from zap_gateway.auth.revocation import RevocationStore  # noqa: E402
from zap_gateway.core.config import get_settings  # noqa: E402
from zap_gateway.factory import create_app  # noqa: E402


if TYPE_CHECKING:
    from fastapi import FastAPI

    from zap_gateway.core.config import Settings


# Mark all tests in this directory as unit tests
pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Never leak cached settings between tests."""
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    """A clock that only moves when told to."""
    return FakeClock()


@pytest.fixture
def revocation_store(clock: FakeClock) -> RevocationStore:
    """Revocation store driven by the fake clock."""
    return RevocationStore(clock=clock)


@pytest.fixture
def settings() -> Settings:
    """Token-mode settings with two registered clients."""
    return SettingsFactory.build()


@pytest.fixture
def scan_engine() -> FakeScanEngine:
    """In-memory scan engine."""
    return FakeScanEngine()


@pytest.fixture
def resolver() -> StaticResolver:
    """Static DNS resolver; every host is public unless configured."""
    return StaticResolver()


@pytest.fixture
def app(
    settings: Settings,
    scan_engine: FakeScanEngine,
    resolver: StaticResolver,
) -> FastAPI:
    """Application wired to the fake engine and resolver."""
    return create_app(settings, scan_engine=scan_engine, resolver=resolver)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """HTTP client talking to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac
