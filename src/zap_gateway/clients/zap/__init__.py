"""ZAP JSON API client package."""

from zap_gateway.clients.zap.client import ZapClient
from zap_gateway.clients.zap.exceptions import (
    TargetUnreachableError,
    ZapApiError,
    ZapError,
    ZapUnavailableError,
)


__all__ = [
    "TargetUnreachableError",
    "ZapApiError",
    "ZapClient",
    "ZapError",
    "ZapUnavailableError",
]
