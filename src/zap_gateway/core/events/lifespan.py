"""Application lifespan event handlers.

Startup configures logging and connects to ZAP; shutdown closes the ZAP
HTTP client. Components themselves are built by ``create_app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from zap_gateway.clients.zap.exceptions import ZapError
from zap_gateway.observability.logging import get_logger, setup_logging


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI

    from zap_gateway.clients.zap.client import ZapClient
    from zap_gateway.core.config import Settings


logger = get_logger(__name__)


async def _init_zap(zap_client: ZapClient) -> None:
    """Connect to ZAP and push startup options.

    ZAP may come up after the gateway, so failures here are logged and the
    readiness probe reports the gateway as degraded instead.
    """
    await zap_client.initialize()
    try:
        version = await zap_client.version()
    except ZapError as e:
        logger.warning(
            "ZAP not reachable at startup - scans unavailable until it is",
            base_url=zap_client.base_url,
            error=str(e),
        )
        return

    logger.info("Connected to ZAP", version=version, base_url=zap_client.base_url)
    await zap_client.apply_initialization()


async def _startup(app: FastAPI, settings: Settings) -> None:
    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
    )

    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.APP_ENV,
        security_mode=settings.security_mode.value,
        registered_clients=len(app.state.credential_store),
        token_service=app.state.token_service is not None,
        allow_localhost=settings.scan.url.allow_localhost,
        allow_private_networks=settings.scan.url.allow_private_networks,
    )

    zap_client: ZapClient | None = app.state.zap_client
    if zap_client is not None:
        await _init_zap(zap_client)

    logger.info("Application startup complete")


async def _shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")

    zap_client: ZapClient | None = app.state.zap_client
    if zap_client is not None:
        await zap_client.shutdown()

    logger.info("Application shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Run startup before serving and shutdown after."""
    settings: Settings = app.state.settings
    await _startup(app, settings)
    try:
        yield
    finally:
        await _shutdown(app)
