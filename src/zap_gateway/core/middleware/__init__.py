"""Custom middleware components."""

from zap_gateway.core.middleware.logging import LoggingMiddleware
from zap_gateway.core.middleware.request_id import RequestIDMiddleware
from zap_gateway.core.middleware.security_headers import SecurityHeadersMiddleware


__all__ = [
    "LoggingMiddleware",
    "RequestIDMiddleware",
    "SecurityHeadersMiddleware",
]
