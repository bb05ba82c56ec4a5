"""Scan target policy exceptions.

Each exception carries a stable ``code`` that the HTTP layer returns as
the ``error`` field of a 400 response.
"""

from __future__ import annotations


class UrlPolicyError(Exception):
    """Base exception for scan targets rejected by the URL safety policy."""

    code = "URL_POLICY_VIOLATION"


class InvalidUrlError(UrlPolicyError):
    """Raised for empty, malformed, or non-http(s) URLs."""

    code = "INVALID_URL"


class ForbiddenTargetError(UrlPolicyError):
    """Raised when the target host or address is not allowed to be scanned."""

    code = "FORBIDDEN_TARGET"


class UnresolvableHostError(UrlPolicyError):
    """Raised when the target hostname cannot be resolved in time."""

    code = "UNRESOLVABLE_HOST"


class ScanLimitExceededError(Exception):
    """Raised when the concurrent scan cap for a scan kind is reached."""

    code = "SCAN_LIMIT_EXCEEDED"

    def __init__(self, kind: str, limit: int) -> None:
        self.kind = kind
        self.limit = limit
        super().__init__(f"Too many running {kind} scans (limit {limit})")
