"""Health check endpoints.

Provides liveness, info, and readiness probes. All three are public.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from zap_gateway.api.dependencies import get_app_settings, get_zap_client
from zap_gateway.clients.zap.client import ZapClient  # noqa: TC001
from zap_gateway.core.config import Settings  # noqa: TC001
from zap_gateway.schemas.health import HealthResponse, InfoResponse, ReadinessResponse


router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Basic health check to verify the service is running.",
)
async def health_check(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> HealthResponse:
    """Check if the service is alive without touching ZAP."""
    return HealthResponse(
        status="healthy",
        version=settings.app.version,
        environment=settings.APP_ENV,
    )


@router.get(
    "/info",
    response_model=InfoResponse,
    summary="Service info",
)
async def info(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> InfoResponse:
    """Describe the gateway and its authentication mode."""
    return InfoResponse(
        name=settings.app.name,
        version=settings.app.version,
        environment=settings.APP_ENV,
        security_mode=settings.security_mode.value,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Readiness check verifying ZAP answers API calls.",
)
async def readiness_check(
    settings: Annotated[Settings, Depends(get_app_settings)],
    zap_client: Annotated[ZapClient | None, Depends(get_zap_client)],
) -> ReadinessResponse:
    """Report ``ready`` when ZAP responds and ``degraded`` otherwise."""
    dependencies: dict[str, str] = {}

    if zap_client is None:
        dependencies["zap"] = "not_configured"
    elif await zap_client.is_available():
        dependencies["zap"] = "healthy"
    else:
        dependencies["zap"] = "unhealthy"

    all_healthy = all(
        status in ("healthy", "not_configured") for status in dependencies.values()
    )

    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        version=settings.app.version,
        environment=settings.APP_ENV,
        dependencies=dependencies,
    )
