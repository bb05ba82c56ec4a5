"""Scan request and response schemas."""

from __future__ import annotations

from pydantic import Field

from zap_gateway.schemas.base import APIRequest, APIResponse
from zap_gateway.services.scanning.models import ScanKind  # noqa: TC001


class SpiderScanRequest(APIRequest):
    """Start a spider crawl of a target."""

    target_url: str = Field(..., min_length=1, description="URL to crawl")
    max_depth: int | None = Field(
        default=None,
        ge=0,
        description="Crawl depth; defaults to the configured limit",
    )


class ActiveScanRequest(APIRequest):
    """Start an active scan of a target."""

    target_url: str = Field(..., min_length=1, description="URL to scan")
    recurse: bool = Field(default=True, description="Scan the subtree under the URL")
    policy: str | None = Field(default=None, description="ZAP scan policy name")


class ScanJobResponse(APIResponse):
    """A scan accepted by ZAP."""

    scan_id: str
    kind: ScanKind
    target_url: str


class ScanProgressResponse(APIResponse):
    """Completion of a scan."""

    scan_id: str
    kind: ScanKind
    progress: int = Field(..., ge=0, le=100, description="Percent complete")
