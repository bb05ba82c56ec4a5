"""Capability scopes granted to API clients.

Scopes follow the pattern ``resource:action``. A client configured with
``"*"`` holds every scope.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from zap_gateway.auth.credentials import WILDCARD_SCOPE


if TYPE_CHECKING:
    from collections.abc import Iterable


class Scope(StrEnum):
    """Application scopes."""

    SCAN_SPIDER = "scan:spider"
    SCAN_ACTIVE = "scan:active"
    SCAN_READ = "scan:read"
    SCAN_STOP = "scan:stop"


def has_scope(granted: Iterable[str], required: Scope | str) -> bool:
    """Check if ``required`` is among ``granted`` or granted via ``*``."""
    granted_set = set(granted)
    return WILDCARD_SCOPE in granted_set or str(required) in granted_set


def has_all_scopes(granted: Iterable[str], required: Iterable[Scope | str]) -> bool:
    """Check if every scope in ``required`` is granted."""
    granted_list = list(granted)
    return all(has_scope(granted_list, scope) for scope in required)


def has_any_scope(granted: Iterable[str], required: Iterable[Scope | str]) -> bool:
    """Check if at least one scope in ``required`` is granted."""
    granted_list = list(granted)
    return any(has_scope(granted_list, scope) for scope in required)
