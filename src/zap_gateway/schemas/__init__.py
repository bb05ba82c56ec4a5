"""Request and response schemas for the HTTP API."""

from zap_gateway.schemas.auth import (
    RefreshTokenRequest,
    RevokeRequest,
    TokenRequest,
    TokenResponse,
    TokenValidationResponse,
)
from zap_gateway.schemas.base import APIRequest, APIResponse
from zap_gateway.schemas.health import HealthResponse, InfoResponse, ReadinessResponse
from zap_gateway.schemas.scans import (
    ActiveScanRequest,
    ScanJobResponse,
    ScanProgressResponse,
    SpiderScanRequest,
)


__all__ = [
    "APIRequest",
    "APIResponse",
    "ActiveScanRequest",
    "HealthResponse",
    "InfoResponse",
    "ReadinessResponse",
    "RefreshTokenRequest",
    "RevokeRequest",
    "ScanJobResponse",
    "ScanProgressResponse",
    "SpiderScanRequest",
    "TokenRequest",
    "TokenResponse",
    "TokenValidationResponse",
]
