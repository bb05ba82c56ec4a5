"""Interface to the external scanning engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from zap_gateway.services.scanning.models import ScanKind, ScanOptions


@runtime_checkable
class ScanEngine(Protocol):
    """Opaque scanning engine.

    Implementations must only ever receive URLs that passed
    ``UrlValidator.validate``. Failures are raised as ``ZapError``.
    """

    async def start_operation(
        self,
        kind: ScanKind,
        url: str,
        options: ScanOptions,
    ) -> str:
        """Start a scan and return the engine's job id."""
        ...

    async def get_progress(self, kind: ScanKind, scan_id: str) -> int:
        """Return completion of a job as a percentage (0-100)."""
        ...

    async def stop(self, kind: ScanKind, scan_id: str) -> None:
        """Stop a running job."""
        ...

    async def stop_all(self, kind: ScanKind) -> None:
        """Stop every running job of ``kind``."""
        ...

    async def count_running(self, kind: ScanKind) -> int:
        """Return how many jobs of ``kind`` are still running."""
        ...
