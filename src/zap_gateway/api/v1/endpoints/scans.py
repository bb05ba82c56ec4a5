"""Scan endpoints.

Every target URL passes the URL safety policy before ZAP sees it.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from zap_gateway.api.dependencies import get_scan_service
from zap_gateway.auth.dependencies import RequireScopes
from zap_gateway.auth.permissions import Scope
from zap_gateway.auth.providers.models import AuthenticatedIdentity  # noqa: TC001
from zap_gateway.schemas.scans import (
    ActiveScanRequest,
    ScanJobResponse,
    ScanProgressResponse,
    SpiderScanRequest,
)
from zap_gateway.services.scanning.models import ScanKind, ScanOptions
from zap_gateway.services.scanning.service import ScanService  # noqa: TC001


router = APIRouter(prefix="/scans", tags=["scans"])


@router.post(
    "/spider",
    response_model=ScanJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start spider scan",
)
async def start_spider_scan(
    body: SpiderScanRequest,
    identity: Annotated[
        AuthenticatedIdentity, Depends(RequireScopes(Scope.SCAN_SPIDER))
    ],
    service: Annotated[ScanService, Depends(get_scan_service)],
) -> ScanJobResponse:
    """Crawl a target to discover its URLs."""
    job = await service.start(
        ScanKind.SPIDER,
        body.target_url,
        ScanOptions(max_depth=body.max_depth),
        client_id=identity.client_id,
    )
    return ScanJobResponse(
        scan_id=job.scan_id, kind=job.kind, target_url=job.target_url
    )


@router.post(
    "/active",
    response_model=ScanJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start active scan",
)
async def start_active_scan(
    body: ActiveScanRequest,
    identity: Annotated[
        AuthenticatedIdentity, Depends(RequireScopes(Scope.SCAN_ACTIVE))
    ],
    service: Annotated[ScanService, Depends(get_scan_service)],
) -> ScanJobResponse:
    """Attack a target with ZAP's active scanners."""
    job = await service.start(
        ScanKind.ACTIVE,
        body.target_url,
        ScanOptions(recurse=body.recurse, policy=body.policy),
        client_id=identity.client_id,
    )
    return ScanJobResponse(
        scan_id=job.scan_id, kind=job.kind, target_url=job.target_url
    )


@router.post(
    "/active/stop-all",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Stop all active scans",
)
async def stop_all_active_scans(
    _identity: Annotated[
        AuthenticatedIdentity, Depends(RequireScopes(Scope.SCAN_STOP))
    ],
    service: Annotated[ScanService, Depends(get_scan_service)],
) -> Response:
    """Stop every running active scan."""
    await service.stop_all(ScanKind.ACTIVE)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{kind}/{scan_id}",
    response_model=ScanProgressResponse,
    summary="Scan progress",
)
async def get_scan_progress(
    kind: ScanKind,
    scan_id: str,
    _identity: Annotated[
        AuthenticatedIdentity, Depends(RequireScopes(Scope.SCAN_READ))
    ],
    service: Annotated[ScanService, Depends(get_scan_service)],
) -> ScanProgressResponse:
    """Return how far a scan has progressed."""
    progress = await service.progress(kind, scan_id)
    return ScanProgressResponse(scan_id=scan_id, kind=kind, progress=progress)


@router.delete(
    "/{kind}/{scan_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Stop scan",
)
async def stop_scan(
    kind: ScanKind,
    scan_id: str,
    _identity: Annotated[
        AuthenticatedIdentity, Depends(RequireScopes(Scope.SCAN_STOP))
    ],
    service: Annotated[ScanService, Depends(get_scan_service)],
) -> Response:
    """Stop one running scan."""
    await service.stop(kind, scan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
