"""ZAP API client exceptions.

These exceptions are converted to a generic 503 response by the
exception handlers. Their messages are logged, never returned.
"""

from __future__ import annotations


class ZapError(Exception):
    """Base exception for ZAP API client errors."""


class ZapUnavailableError(ZapError):
    """Raised when the ZAP API cannot be reached or times out."""


class ZapApiError(ZapError):
    """Raised when ZAP answers with an error status or an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TargetUnreachableError(ZapApiError):
    """Raised when ZAP cannot fetch the target before a spider scan."""
