"""Scan target validation and scan orchestration."""

from zap_gateway.services.scanning.exceptions import (
    ForbiddenTargetError,
    InvalidUrlError,
    ScanLimitExceededError,
    UnresolvableHostError,
    UrlPolicyError,
)
from zap_gateway.services.scanning.models import ScanJob, ScanKind, ScanOptions
from zap_gateway.services.scanning.protocol import ScanEngine
from zap_gateway.services.scanning.service import ScanService
from zap_gateway.services.scanning.url_validation import UrlValidator


__all__ = [
    "ForbiddenTargetError",
    "InvalidUrlError",
    "ScanEngine",
    "ScanJob",
    "ScanKind",
    "ScanLimitExceededError",
    "ScanOptions",
    "ScanService",
    "UnresolvableHostError",
    "UrlPolicyError",
    "UrlValidator",
]
