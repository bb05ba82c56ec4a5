"""FastAPI dependencies for service access.

Components are built once by ``create_app`` and stored in ``app.state``.
These dependencies hand them to route handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from zap_gateway.core.exceptions import ServiceUnavailableError


if TYPE_CHECKING:
    from zap_gateway.clients.zap.client import ZapClient
    from zap_gateway.core.config import Settings
    from zap_gateway.services.scanning.service import ScanService


async def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was built with."""
    settings: Settings = request.app.state.settings
    return settings


async def get_scan_service(request: Request) -> ScanService:
    """Get the scan service from app state.

    Raises:
        ServiceUnavailableError: 503 if the service is not initialized.
    """
    service: ScanService | None = getattr(request.app.state, "scan_service", None)
    if service is None:
        msg = "Scan service not available"
        raise ServiceUnavailableError(msg)
    return service


async def get_zap_client(request: Request) -> ZapClient | None:
    """Get the ZAP client, or None when a different scan engine is in use."""
    return getattr(request.app.state, "zap_client", None)
